"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import SQLModelDebtRepository


@dataclass
class AppContext:
    """Configuration, database handles and the debt store, wired once."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    debt_repo: SQLModelDebtRepository


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)
    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        debt_repo=SQLModelDebtRepository(session_factory),
    )
