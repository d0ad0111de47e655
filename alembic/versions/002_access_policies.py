"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 002_access_policies (Alembic Migration)

Responsibilities:
  - Crear access_policies con los invariantes del dominio como CHECKs:
      * user  => subject_id NOT NULL y role_name NULL
      * role  => role_name NOT NULL y subject_id NULL
      * document => resource_id NOT NULL; global => resource_id NULL
      * priority 1..100, actions no vacío y dentro del vocabulario
  - Índices para las lookups de has_permission y revoke.

Collaborators:
  - infrastructure/repositories/postgres/access_policy.py
  - users / documents (FK con ON DELETE CASCADE)

Policy:
  - role_name es columna explícita: name es solo etiqueta humana.
============================================================
"""

from alembic import op

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crea access_policies."""
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS access_policies (
            id UUID NOT NULL,
            name VARCHAR(255) NOT NULL,
            description VARCHAR(1000) NOT NULL DEFAULT '',
            subject_type VARCHAR(10) NOT NULL,
            subject_id UUID,
            role_name VARCHAR(64),
            resource_type VARCHAR(10) NOT NULL,
            resource_id UUID,
            actions TEXT[] NOT NULL,
            priority SMALLINT NOT NULL DEFAULT 50,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT pk_access_policies PRIMARY KEY (id),
            CONSTRAINT fk_access_policies_subject_id__users
                FOREIGN KEY (subject_id) REFERENCES users (id) ON DELETE CASCADE,
            CONSTRAINT fk_access_policies_resource_id__documents
                FOREIGN KEY (resource_id) REFERENCES documents (id) ON DELETE CASCADE,
            CONSTRAINT ck_access_policies_subject CHECK (
                (subject_type = 'user' AND subject_id IS NOT NULL AND role_name IS NULL)
                OR (subject_type = 'role' AND role_name IS NOT NULL AND subject_id IS NULL)
            ),
            CONSTRAINT ck_access_policies_resource CHECK (
                (resource_type = 'document' AND resource_id IS NOT NULL)
                OR (resource_type = 'global' AND resource_id IS NULL)
            ),
            CONSTRAINT ck_access_policies_priority CHECK (priority BETWEEN 1 AND 100),
            CONSTRAINT ck_access_policies_actions CHECK (
                cardinality(actions) > 0
                AND actions <@ ARRAY['read', 'write', 'delete', 'manage']::text[]
            ),
            CONSTRAINT ck_access_policies_name CHECK (length(btrim(name)) > 0)
        );
    """
    )

    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_access_policies_resource_id "
        "ON access_policies (resource_id);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_access_policies_subject_id "
        "ON access_policies (subject_id);"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_access_policies_role_name "
        "ON access_policies (role_name) WHERE subject_type = 'role';"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_access_policies_active_global "
        "ON access_policies (resource_type) WHERE is_active AND resource_type = 'global';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS access_policies;")
