from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _register_tables(domain: Domain, provider_name: str) -> None:
    # Touching _dao forces the SQLAlchemy model of each record to be built
    # and attached to the provider's metadata.
    for registry in (
        domain.registry.aggregates,
        domain.registry.entities,
        domain.registry.projections,
    ):
        for _, record in registry.items():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create tables for orders, fulfillments, labels and packaging types."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] not in _SQL_PROVIDERS:
                continue
            engine = create_engine(provider.conn_info["database_uri"])
            _register_tables(domain, provider.name)
            provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop every table created by setup_db"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
