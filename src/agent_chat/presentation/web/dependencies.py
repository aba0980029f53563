"""
FastAPI dependencies
"""

from fastapi import Request

from ...application.container import AppContainer


def get_container(request: Request) -> AppContainer:
    """
    The AppContainer of the running app (FastAPI Depends)

    Returns:
        AppContainer stored on app.state by create_app()
    """
    return request.app.state.container
