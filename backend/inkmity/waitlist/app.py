import logging
from typing import Any, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from ..core.config import settings
from ..utils.email import send_email_async
from ..utils.json_utils import loads
from ..utils.validation import normalize_email, validate_email
from .store import WaitlistStore, get_store

logger = logging.getLogger(__name__)

NAME_MAX = 120

app = FastAPI(title="Inkmity Waitlist", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:  # pragma: no cover - last-resort handler
        logger.exception("Waitlist error: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Internal Server Error"},
        )


class BadRequest(ValueError):
    pass


def parse_body(raw: bytes) -> dict[str, Any]:
    """Decode the JSON body; some form builders post it double-encoded as a string."""
    if not raw:
        return {}
    try:
        data = loads(raw)
        if isinstance(data, str):
            data = loads(data)
    except ValueError:
        raise BadRequest("Invalid JSON body")
    if not isinstance(data, dict):
        raise BadRequest("Invalid JSON body")
    return data


def normalize_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    name = " ".join(str(value).split())
    if len(name) > NAME_MAX:
        raise BadRequest(f"Name must be at most {NAME_MAX} characters")
    return name or None


def _bad_request(message: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def send_welcome_email(email: str, name: Optional[str], share_url: str) -> None:
    greeting = f"Hi {name}," if name else "Hi,"
    await send_email_async(
        email,
        "You're on the Inkmity waitlist",
        f"{greeting}\n\nThanks for joining the Inkmity waitlist. "
        f"Share your link to move up: {share_url}\n",
    )


@app.get("/api/waitlist")
def waitlist_count(store: WaitlistStore = Depends(get_store)):
    return {"total_signups": store.count()}


@app.post("/api/waitlist")
async def join_waitlist(
    request: Request,
    background_tasks: BackgroundTasks,
    store: WaitlistStore = Depends(get_store),
):
    try:
        body = parse_body(await request.body())
        name = normalize_name(body.get("name"))
    except BadRequest as exc:
        return _bad_request(str(exc))
    email = normalize_email(str(body.get("email") or ""))
    if not email:
        return _bad_request("Email is required")
    if not validate_email(email):
        return _bad_request("Invalid email")

    entry, created, position, total = store.join(email, name)
    if not created:
        return ORJSONResponse(
            status_code=status.HTTP_200_OK,
            content={"ok": True, "message": "Already on waitlist", "total_signups": total},
        )

    share_url = f"{settings.WAITLIST_SHARE_BASE_URL.rstrip('/')}/?r={entry.ref_code}"
    background_tasks.add_task(send_welcome_email, email, name, share_url)
    logger.info("Waitlist signup #%d", position)
    return ORJSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "ok": True,
            "position": position,
            "total_signups": total,
            "ref_code": entry.ref_code,
            "share_url": share_url,
        },
    )
