"""
tasklist - Dependencies
FastAPI providers for the objects created by the application lifespan
"""

from typing import Any, Dict

from fastapi import Request
from fastapi.templating import Jinja2Templates

from tasklist.config import Settings
from tasklist.core.database import TaskStore

def get_store(request: Request) -> TaskStore:
    return request.app.state.store

def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

async def get_form_data(request: Request) -> Dict[str, Any]:
    """Raw form fields of the request body; repeated keys keep the last value."""
    form = await request.form()
    return dict(form)
