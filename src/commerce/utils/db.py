"""Schema management for SQL-backed providers.

The memory provider needs no schema, so both helpers are no-ops unless the
domain is configured with a SQLite or PostgreSQL database.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    return [provider for _, provider in domain.providers.items() if provider.conn_info["provider"] in SQL_PROVIDERS]


def setup_db(domain: Domain) -> int:
    """Create tables for every aggregate and entity on SQL providers.

    Returns the number of providers whose schema was created.
    """
    created = 0
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Touching _dao registers the model with the provider's metadata
            for _, aggregate_record in domain.registry.aggregates.items():
                if aggregate_record.cls.meta_.provider == provider.name:
                    domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

            for _, entity_record in domain.registry.entities.items():
                if entity_record.cls.meta_.provider == provider.name:
                    domain.repository_for(entity_record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)
            created += 1

    return created


def drop_db(domain: Domain) -> int:
    """Drop every table created by ``setup_db``."""
    dropped = 0
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
            dropped += 1

    return dropped
