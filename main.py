import asyncio
import time
import uuid
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Annotated, List, Optional

import structlog
from fastapi import Depends, FastAPI, Form, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import HTTPConnection

from content import HERO_ROLES, NAV_LINKS, PROJECT_FILTERS, QUICK_INFO, SKILLS, TIMELINE, VALUES, group_skills, is_active
from database import PROJECTS, Gateway
from feeds import FeedOptions, ProjectsFeed, load_projects
from forms import CREATE_ERROR, CREATE_SUCCESS, LOGIN_MISSING_FIELDS, ProjectForm
from logging_config import get_logger, setup_logging
from schemas import AdminUser, Project, ProjectCategory, ProjectCreate, Skill
from session import SessionState
from settings import get_settings
from terminal import Terminal

settings = get_settings()
logger = get_logger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.globals.update(nav_links=NAV_LINKS, is_active=is_active)

DELETE_ERROR = "Erro ao deletar projeto. Tente novamente."


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    app.state.gateway = Gateway(settings.supabase_url, settings.supabase_anon_key)
    logger.info("gateway_ready", base_url=settings.supabase_url)
    yield
    await app.state.gateway.aclose()


app = FastAPI(title="Portfolio", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, same_site="lax")


@app.middleware("http")
async def request_logging(request: Request, call_next):
    structlog.contextvars.bind_contextvars(
        request_id=request.headers.get("X-Request-ID", f"req_{uuid.uuid4().hex[:8]}"),
        method=request.method,
        path=request.url.path,
    )
    start = time.time()
    try:
        response = await call_next(request)
        duration_ms = round((time.time() - start) * 1000, 2)
        if response.status_code >= 500:
            logger.error("http_request_failed", status_code=response.status_code, duration_ms=duration_ms)
        else:
            logger.info("http_request", status_code=response.status_code, duration_ms=duration_ms)
        return response
    except Exception as e:
        logger.error("http_request_exception", error=str(e), error_type=type(e).__name__, exc_info=True)
        raise
    finally:
        structlog.contextvars.unbind_contextvars("request_id", "method", "path")


# Dependencies

def get_gateway(conn: HTTPConnection) -> Gateway:
    return conn.app.state.gateway


async def get_session_state(request: Request, gateway: Gateway = Depends(get_gateway)):
    async with SessionState(gateway.auth(request.session)) as state:
        yield state


def require_admin(state: SessionState = Depends(get_session_state)) -> SessionState:
    if not state.authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return state


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


async def cancel_task(task: asyncio.Task) -> None:
    """Cancel and collect, so a failure inside the task is not left unretrieved."""
    task.cancel()
    with suppress(asyncio.CancelledError, Exception):
        await task


# Health
@app.get("/health")
async def health(gateway: Gateway = Depends(get_gateway)):
    reachable = await gateway.ping()
    return {
        "backend": "✅ Running",
        "gateway": "✅ Connected" if reachable else "❌ Not Available",
        "gateway_url": gateway.base_url,
    }


# Pages
@app.get("/", response_class=HTMLResponse)
async def home(request: Request, gateway: Gateway = Depends(get_gateway)):
    featured = await load_projects(gateway, featured_only=True)
    return templates.TemplateResponse(
        request,
        "home.html",
        {"projects": featured, "roles": HERO_ROLES, "skill_groups": group_skills(SKILLS)},
    )


@app.get("/projects", response_class=HTMLResponse)
async def projects_page(
    request: Request,
    category: Optional[ProjectCategory] = None,
    gateway: Gateway = Depends(get_gateway),
):
    projects = await load_projects(gateway, category=category)
    return templates.TemplateResponse(
        request,
        "projects.html",
        {"projects": projects, "filters": PROJECT_FILTERS, "active_filter": category},
    )


@app.get("/about", response_class=HTMLResponse)
async def about_page(request: Request):
    return templates.TemplateResponse(
        request,
        "about.html",
        {"timeline": TIMELINE, "values": VALUES, "quick_info": QUICK_INFO},
    )


# Admin
@app.get("/admin", response_class=HTMLResponse)
async def login_page(request: Request, state: SessionState = Depends(get_session_state)):
    if state.authenticated:
        return redirect("/admin/dashboard")
    return templates.TemplateResponse(request, "login.html", {"error": None, "email": ""})


@app.post("/admin", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    state: SessionState = Depends(get_session_state),
):
    if not email or not password:
        error = LOGIN_MISSING_FIELDS
    else:
        error = await state.sign_in(email, password)
    if error:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": error, "email": email},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return redirect("/admin/dashboard")


@app.post("/admin/logout")
async def logout_submit(state: SessionState = Depends(get_session_state)):
    await state.sign_out()
    return redirect("/admin")


async def render_dashboard(
    request: Request,
    state: SessionState,
    gateway: Gateway,
    form: Optional[ProjectForm] = None,
    tab: str = "list",
    form_error: Optional[str] = None,
    notice: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
):
    projects = await load_projects(gateway)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": state.user,
            "projects": projects,
            "form": form or ProjectForm(),
            "tab": tab,
            "form_error": form_error,
            "notice": notice,
        },
        status_code=status_code,
    )


@app.get("/admin/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    tab: str = "list",
    created: bool = False,
    error: Optional[str] = None,
    state: SessionState = Depends(get_session_state),
    gateway: Gateway = Depends(get_gateway),
):
    if not state.authenticated:
        return redirect("/admin")
    notice = CREATE_SUCCESS if created else None
    form_error = DELETE_ERROR if error == "delete" else None
    return await render_dashboard(request, state, gateway, tab=tab, notice=notice, form_error=form_error)


@app.post("/admin/dashboard/projects", response_class=HTMLResponse)
async def dashboard_create(
    request: Request,
    form: Annotated[ProjectForm, Form()],
    state: SessionState = Depends(get_session_state),
    gateway: Gateway = Depends(get_gateway),
):
    if not state.authenticated:
        return redirect("/admin")

    form_error = form.first_error()
    if form_error is None:
        created = await gateway.create_document(PROJECTS, form.to_payload(), state.access_token)
        if created is not None:
            return redirect("/admin/dashboard?tab=new&created=1")
        form_error = CREATE_ERROR

    return await render_dashboard(
        request,
        state,
        gateway,
        form=form,
        tab="new",
        form_error=form_error,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def find_project(gateway: Gateway, project_id: str) -> Project:
    for project in await load_projects(gateway):
        if project.id == project_id:
            return project
    raise HTTPException(status_code=404, detail="Project not found")


@app.get("/admin/dashboard/projects/{project_id}/delete", response_class=HTMLResponse)
async def dashboard_delete_confirm(
    request: Request,
    project_id: str,
    state: SessionState = Depends(get_session_state),
    gateway: Gateway = Depends(get_gateway),
):
    if not state.authenticated:
        return redirect("/admin")
    project = await find_project(gateway, project_id)
    return templates.TemplateResponse(request, "confirm_delete.html", {"project": project, "user": state.user})


@app.post("/admin/dashboard/projects/{project_id}/delete")
async def dashboard_delete(
    project_id: str,
    confirm: str = Form(""),
    state: SessionState = Depends(get_session_state),
    gateway: Gateway = Depends(get_gateway),
):
    if not state.authenticated:
        return redirect("/admin")
    if confirm != "yes":
        return redirect("/admin/dashboard")
    if not await gateway.delete_document(PROJECTS, project_id, state.access_token):
        return redirect("/admin/dashboard?error=delete")
    return redirect("/admin/dashboard")


# API: projects
@app.get("/api/projects", response_model=List[Project])
async def api_list_projects(
    featured: bool = False,
    category: Optional[ProjectCategory] = None,
    gateway: Gateway = Depends(get_gateway),
):
    return await load_projects(gateway, featured_only=featured, category=category)


@app.post("/api/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
async def api_create_project(
    payload: ProjectCreate,
    state: SessionState = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
):
    created = await gateway.create_document(PROJECTS, payload, state.access_token)
    if created is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=CREATE_ERROR)
    return created


@app.delete("/api/projects/{project_id}")
async def api_delete_project(
    project_id: str,
    confirm: bool = False,
    state: SessionState = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Deletion must be confirmed with confirm=true")
    if not await gateway.delete_document(PROJECTS, project_id, state.access_token):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=DELETE_ERROR)
    return {"ok": True}


# API: auth
class LoginRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    user: Optional[AdminUser] = None


@app.post("/api/auth/login", response_model=SessionResponse)
async def api_login(payload: LoginRequest, state: SessionState = Depends(get_session_state)):
    error = await state.sign_in(payload.email, payload.password)
    if error:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error)
    return {"user": state.user}


@app.post("/api/auth/logout")
async def api_logout(state: SessionState = Depends(get_session_state)):
    await state.sign_out()
    return {"ok": True}


@app.get("/api/auth/session", response_model=SessionResponse)
async def api_session(state: SessionState = Depends(get_session_state)):
    return {"user": state.user}


@app.get("/api/skills", response_model=List[Skill])
def api_skills():
    return SKILLS


# Live channels
@app.websocket("/ws/projects")
async def projects_feed(websocket: WebSocket, gateway: Gateway = Depends(get_gateway)):
    """Each text frame carries feed options; every state change is sent back."""
    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()
    feed = ProjectsFeed(gateway)
    feed.subscribe(lambda state: outbox.put_nowait({"type": "state", **state.model_dump(mode="json")}))

    async def drain() -> None:
        while True:
            await websocket.send_json(await outbox.get())

    sender = asyncio.create_task(drain())
    try:
        while True:
            message = await websocket.receive_text()
            try:
                options = FeedOptions.model_validate_json(message)
            except ValidationError as e:
                outbox.put_nowait({"type": "invalid", "detail": e.errors(include_url=False, include_context=False)})
                continue
            feed.update(options.featured_only, options.category)
    except WebSocketDisconnect:
        logger.debug("projects_feed_disconnected")
    finally:
        feed.close()
        await feed.settle()
        await cancel_task(sender)


@app.websocket("/ws/terminal")
async def terminal_session(websocket: WebSocket):
    """Each text frame is one command line; lines stream back as they are typed."""
    await websocket.accept()
    terminal = Terminal(delay=settings.terminal_line_delay, sink=websocket.send_json)
    await websocket.send_json(
        {"type": "history", "lines": [line.model_dump(mode="json") for line in terminal.history]}
    )
    try:
        while True:
            await terminal.execute(await websocket.receive_text())
    except WebSocketDisconnect:
        logger.debug("terminal_disconnected")
