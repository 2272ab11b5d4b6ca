"""
tasklist - Task Routes
Page and htmx fragment endpoints. Every action runs one store mutation and
answers with the freshly queried list the caller was looking at.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from tasklist.core.database import TaskStore
from tasklist.core.models import AddTaskForm, CompleteTaskForm, DeleteTaskForm, EditTaskForm
from tasklist.dependencies import get_form_data, get_settings, get_store, get_templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

PAGE_TEMPLATE = "index.html"
LIST_TEMPLATE = "task_list.html"

def render_tasks(
    request: Request,
    store: TaskStore,
    templates: Jinja2Templates,
    completed: bool,
) -> HTMLResponse:
    """List fragment for one subset. Query and rendering share the store lock."""
    with store.locked():
        tasks = store.list_by_status(completed)
        return templates.TemplateResponse(
            request,
            LIST_TEMPLATE,
            {"tasks": tasks, "show_completed": completed},
        )

# ===== PAGE =====

@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    templates: Jinja2Templates = Depends(get_templates),
    settings=Depends(get_settings),
):
    return templates.TemplateResponse(request, PAGE_TEMPLATE, {"title": settings.APP_NAME})

# ===== FRAGMENTS =====

@router.get("/getTasks", response_class=HTMLResponse)
def get_tasks(
    request: Request,
    store: TaskStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
):
    logger.debug("getTasks called")
    return render_tasks(request, store, templates, completed=False)

@router.get("/getCompletedTasks", response_class=HTMLResponse)
def get_completed_tasks(
    request: Request,
    store: TaskStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
):
    logger.debug("getCompletedTasks called")
    return render_tasks(request, store, templates, completed=True)

# ===== ACTIONS =====

@router.post("/addTask", response_class=HTMLResponse)
def add_task(
    request: Request,
    data: Dict[str, Any] = Depends(get_form_data),
    store: TaskStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
):
    form = AddTaskForm.parse(data)
    task_id = store.create(form.task)
    logger.info(f"Task {task_id} added")
    return render_tasks(request, store, templates, completed=False)

@router.post("/completeTask", response_class=HTMLResponse)
def complete_task(
    request: Request,
    data: Dict[str, Any] = Depends(get_form_data),
    store: TaskStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
):
    form = CompleteTaskForm.parse(data)
    logger.debug(
        f"TaskID: {form.task_id}, completing: {form.completed}, showCompleted: {form.show_completed}"
    )
    store.set_completed(form.task_id, form.completed)
    return render_tasks(request, store, templates, completed=form.show_completed)

@router.post("/deleteTask", response_class=HTMLResponse)
def delete_task(
    request: Request,
    data: Dict[str, Any] = Depends(get_form_data),
    store: TaskStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
):
    form = DeleteTaskForm.parse(data)
    store.delete(form.task_id)
    logger.info(f"Task {form.task_id} deleted")
    return render_tasks(request, store, templates, completed=form.show_completed)

@router.post("/editTask", response_class=HTMLResponse)
def edit_task(
    request: Request,
    data: Dict[str, Any] = Depends(get_form_data),
    store: TaskStore = Depends(get_store),
    templates: Jinja2Templates = Depends(get_templates),
):
    form = EditTaskForm.parse(data)
    store.set_text(form.task_id, form.new_task)
    return render_tasks(request, store, templates, completed=form.show_completed)
