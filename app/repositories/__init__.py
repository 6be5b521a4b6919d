"""
Repository package for data access layers.

Each module exposes a `...RepositoryProtocol` with the methods the services
need, a SQLAlchemy implementation bound to an `AsyncSession`, and an in-memory
implementation bound to a `MemoryStore`. `REPOSITORY_BACKEND` (`sql` | `memory`)
selects which one the request dependencies in `app.core.dependencies` build.
"""
