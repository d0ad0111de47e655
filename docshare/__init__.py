"""
docshare: control de acceso a documentos y tokens de descarga de un solo uso.

Capas:
  - domain: entidades (AccessPolicy, DownloadToken) y puertos (Protocols).
  - identity: motor de decisión (AccessControlService) y RBAC por roles.
  - application: casos de uso (grant / revoke / check / tokens).
  - infrastructure: repositorios in-memory y PostgreSQL.
  - crosscutting: config, logging, métricas, excepciones.
"""

__version__ = "0.1.0"
