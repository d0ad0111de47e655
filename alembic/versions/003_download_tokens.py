"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 003_download_tokens (Alembic Migration)

Responsibilities:
  - Crear download_tokens (tokens de descarga de un solo uso).
  - token UNIQUE (64 hex), expires_at > created_at.
  - Índice parcial de tokens sin usar (lookup de canje y limpieza).

Collaborators:
  - infrastructure/repositories/postgres/download_token.py
  - documents / users (FK con ON DELETE CASCADE)

Policy:
  - used_at NULL = no canjeado. El canje es un UPDATE condicional sobre
    used_at IS NULL; no hay columna de estado (EXPIRED se deriva del tiempo).
============================================================
"""

from alembic import op

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crea download_tokens."""
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS download_tokens (
            id UUID NOT NULL,
            token VARCHAR(64) NOT NULL,
            document_id UUID NOT NULL,
            issued_to UUID NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL,
            used_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT pk_download_tokens PRIMARY KEY (id),
            CONSTRAINT uq_download_tokens_token UNIQUE (token),
            CONSTRAINT fk_download_tokens_document_id__documents
                FOREIGN KEY (document_id) REFERENCES documents (id) ON DELETE CASCADE,
            CONSTRAINT fk_download_tokens_issued_to__users
                FOREIGN KEY (issued_to) REFERENCES users (id) ON DELETE CASCADE,
            CONSTRAINT ck_download_tokens_expiry CHECK (expires_at > created_at),
            CONSTRAINT ck_download_tokens_token_format CHECK (token ~ '^[0-9a-f]{64}$')
        );
    """
    )

    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_download_tokens_document_id "
        "ON download_tokens (document_id);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_download_tokens_issued_to "
        "ON download_tokens (issued_to);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_download_tokens_expires_at "
        "ON download_tokens (expires_at);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_download_tokens_unused "
        "ON download_tokens (document_id, expires_at) WHERE used_at IS NULL;"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS download_tokens;")
