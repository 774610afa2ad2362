"""
voting_dao/app.py
-----------------
Thin entrypoint for running the DAO FastAPI app via:

    uvicorn voting_dao.app:app

All real route wiring lives in voting_dao.dao_api.
"""

from .dao_api import create_app

app = create_app()  # re-export for uvicorn


if __name__ == "__main__":
    # Convenience for: python -m voting_dao.app
    import uvicorn

    from .settings import settings

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
