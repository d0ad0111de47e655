"""Application layer: casos de uso que orquestan autorización, persistencia y auditoría."""
