"""Cross-cutting concerns: configuración, logging, métricas, errores y timing."""
