from fastapi import Request
from shared.database import Base, get_engine, get_session

__all__ = ["Base", "get_engine", "get_session", "get_db"]


async def get_db(request: Request):
    # session factory lives on app.state, created in the lifespan
    async with request.app.state.session_factory() as session:
        yield session
