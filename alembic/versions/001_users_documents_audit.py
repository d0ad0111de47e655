"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_users_documents_audit (Alembic Migration)

Responsibilities:
  - Crear las tablas de las que depende el control de acceso:
      users (identidad mínima), documents (dueño / workspace),
      audit_events (append-only, metadata JSONB).

Collaborators:
  - PostgreSQL 16+
  - infrastructure/repositories/postgres/document.py, audit_event.py

Policy:
  - Migración baseline. Evolución con migraciones aditivas (002+).
  - Convención: pk_<tabla>, fk_<tabla>_<col>__<ref>, ix_<tabla>_<col>.
============================================================
"""

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crea users, documents y audit_events."""
    # 1. Identidad mínima (la autenticación vive fuera de este servicio)
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id UUID NOT NULL,
            email TEXT,
            role TEXT NOT NULL DEFAULT 'user',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_users PRIMARY KEY (id)
        );
    """
    )

    # 2. Documentos: solo lo que necesita el control de acceso
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS documents (
            id UUID NOT NULL,
            owner_id UUID NOT NULL,
            title TEXT NOT NULL DEFAULT '',
            workspace_id UUID,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_documents PRIMARY KEY (id),
            CONSTRAINT fk_documents_owner_id__users
                FOREIGN KEY (owner_id) REFERENCES users (id) ON DELETE CASCADE
        );
    """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_documents_owner_id ON documents (owner_id);"
    )

    # 3. Auditoría (append-only)
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS audit_events (
            id UUID NOT NULL,
            actor TEXT NOT NULL,
            action TEXT NOT NULL,
            target_id UUID,
            metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_audit_events PRIMARY KEY (id)
        );
    """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_audit_events_action ON audit_events (action);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_audit_events_created_at "
        "ON audit_events (created_at DESC);"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS audit_events;")
    op.execute("DROP TABLE IF EXISTS documents;")
    op.execute("DROP TABLE IF EXISTS users;")
