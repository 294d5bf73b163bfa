# routes.py
from fastapi import FastAPI
from controller.analysis_controller import analysis_router
from controller.auth_controller import auth_router
from controller.history_controller import history_router
from controller.settings_controller import settings_router
from controller.validation_controller import validation_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(validation_router)
    app.include_router(analysis_router)
    app.include_router(history_router)
    app.include_router(auth_router)
    app.include_router(settings_router)
