import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from pymongo.database import Database

from art import (
    ArtGenerationError,
    ArtGenerator,
    GenerationErrorCode,
    InvalidPromptError,
    collaboration_prompt,
    compose_prompt,
)
from config import Settings, get_settings
from database import (
    DuplicateEmailError,
    ensure_indexes,
    find_art_by_id,
    find_art_by_owner,
    find_art_by_owner_and_mood,
    find_user_by_email,
    find_user_by_id,
    get_db,
    increment_votes,
    insert_art,
    insert_user,
)
from schemas import DEFAULT_STYLE, ArtPiece, Mood, User as UserSchema, avatar_for
from security import AuthError, AuthErrorCode, hash_password, issue_token, verify_password, verify_token

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Fails fast when JWT_SECRET or DATABASE_URL is missing
app_settings = get_settings()
if not app_settings.provider.is_complete:
    logger.warning(
        "ART_API_URL, ART_API_TOKEN or Cloudinary credentials are not fully defined. "
        "Art generation will use mock images."
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(get_db())
    yield


app = FastAPI(title="Mood Art API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = error["loc"][-1] if error.get("loc") else "body"
        messages.append(f"{field}: {error['msg']}")
    return JSONResponse(status_code=400, content={"detail": ", ".join(messages)})


@app.exception_handler(InvalidPromptError)
async def invalid_prompt_handler(request: Request, exc: InvalidPromptError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Something went wrong on the server."})


GENERATION_ERROR_STATUS = {
    GenerationErrorCode.AUTH_FAILURE: 502,
    GenerationErrorCode.RATE_LIMITED: 429,
    GenerationErrorCode.CONNECTIVITY_FAILURE: 503,
    GenerationErrorCode.GENERATION_FAILURE: 502,
}

AUTH_ERROR_MESSAGES = {
    AuthErrorCode.NO_TOKEN: "No authentication token provided. Authorization denied.",
    AuthErrorCode.EXPIRED_TOKEN: "Authentication token has expired. Please log in again.",
    AuthErrorCode.INVALID_TOKEN: "Invalid authentication token. Authorization denied.",
}


def generation_http_error(error: ArtGenerationError) -> HTTPException:
    return HTTPException(GENERATION_ERROR_STATUS[error.code], detail=error.message)


# Utilities

def oid_str(oid) -> str:
    return str(oid)


def ensure_user(doc: dict) -> dict:
    if not doc:
        return doc
    doc["id"] = oid_str(doc.get("_id"))
    doc.pop("_id", None)
    doc.pop("password_hash", None)
    return doc


def ensure_art(doc: dict) -> dict:
    if not doc:
        return doc
    doc["id"] = oid_str(doc.get("_id"))
    doc.pop("_id", None)
    return doc


def get_art_generator(settings: Settings = Depends(get_settings)) -> ArtGenerator:
    return ArtGenerator(settings.provider)


def current_user_id(
    x_auth_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    try:
        if not x_auth_token:
            raise AuthError(AuthErrorCode.NO_TOKEN)
        return verify_token(x_auth_token, settings.jwt_secret)
    except AuthError as exc:
        raise HTTPException(401, detail=AUTH_ERROR_MESSAGES[exc.code])


def optional_user_id(
    x_auth_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    if not x_auth_token:
        return None
    try:
        return verify_token(x_auth_token, settings.jwt_secret)
    except AuthError as exc:
        logger.warning("Optional auth: %s, proceeding as unauthenticated.", exc.code.value)
        return None


# Auth models

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    mood: Optional[Mood] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    token: str
    avatar: str
    user_id: str
    msg: str


# Art models

class ArtRequest(BaseModel):
    mood: Optional[Mood] = None
    prompt: Optional[str] = None
    style: Optional[str] = None
    colors: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_mood_or_prompt(self):
        if self.mood is None and not (self.prompt or "").strip():
            raise ValueError("Either a mood or a prompt is required")
        return self


class CollaborateRequest(BaseModel):
    mood1: Mood
    mood2: Mood
    partner_email: Optional[EmailStr] = None


@app.get("/")
def read_root():
    return {"message": "Mood Art API running"}


# Auth endpoints

@app.post("/api/auth/signup", response_model=AuthResponse, status_code=201)
def signup(
    payload: SignupRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if find_user_by_email(db, payload.email):
        raise HTTPException(
            400,
            detail="User with this email already exists. Please use a different email or log in.",
        )
    user = UserSchema(
        email=payload.email,
        password_hash=hash_password(payload.password),
        avatar=avatar_for(payload.mood),
    )
    try:
        user_id = insert_user(db, user)
    except DuplicateEmailError:
        raise HTTPException(
            400,
            detail="User with this email already exists. Please use a different email or log in.",
        )
    return {
        "token": issue_token(user_id, settings.jwt_secret),
        "avatar": user.avatar,
        "user_id": user_id,
        "msg": "User registered successfully!",
    }


@app.post("/api/auth/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = find_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(400, detail="Invalid Credentials. Please check your email and password.")
    user_id = oid_str(user["_id"])
    return {
        "token": issue_token(user_id, settings.jwt_secret),
        "avatar": user.get("avatar", ""),
        "user_id": user_id,
        "msg": "Logged in successfully!",
    }


@app.get("/api/auth/me")
def get_me(user_id: str = Depends(current_user_id), db: Database = Depends(get_db)):
    user = find_user_by_id(db, user_id)
    if not user:
        raise HTTPException(404, detail="User not found.")
    return ensure_user(user)


# Art endpoints

@app.post("/api/art", status_code=201)
def create_art(
    payload: ArtRequest,
    user_id: Optional[str] = Depends(optional_user_id),
    db: Database = Depends(get_db),
    generator: ArtGenerator = Depends(get_art_generator),
):
    mood = payload.mood.value if payload.mood else None
    art_prompt = compose_prompt(mood, payload.prompt, payload.style, payload.colors)

    result = generator.try_generate(art_prompt)
    if not result.ok:
        raise generation_http_error(result.error)

    art = ArtPiece(
        user_id=user_id,
        mood=payload.mood or Mood.MIXED,
        image_url=result.image_url,
        prompt=payload.prompt or "",
        style=payload.style or DEFAULT_STYLE,
        colors=payload.colors,
    )
    return ensure_art(insert_art(db, art))


@app.get("/api/art/history")
def art_history(user_id: Optional[str] = Depends(optional_user_id), db: Database = Depends(get_db)):
    if not user_id:
        return []
    return [ensure_art(doc) for doc in find_art_by_owner(db, user_id)]


@app.get("/api/art/evolution/{mood}")
def art_evolution(
    mood: Mood,
    user_id: Optional[str] = Depends(optional_user_id),
    db: Database = Depends(get_db),
):
    if not user_id:
        return []
    return [ensure_art(doc) for doc in find_art_by_owner_and_mood(db, user_id, mood.value)]


@app.post("/api/art/collaborate", status_code=201)
def collaborate(
    payload: CollaborateRequest,
    user_id: Optional[str] = Depends(optional_user_id),
    db: Database = Depends(get_db),
    generator: ArtGenerator = Depends(get_art_generator),
):
    partner_id = None
    if payload.partner_email:
        partner = find_user_by_email(db, payload.partner_email)
        if partner:
            partner_id = oid_str(partner["_id"])
        else:
            logger.warning(
                "Collaborator email %s not found. Proceeding without partner.", payload.partner_email
            )

    art_prompt = collaboration_prompt(payload.mood1.value, payload.mood2.value)
    result = generator.try_generate(art_prompt)
    if not result.ok:
        raise generation_http_error(result.error)

    collaborators = [uid for uid in (user_id, partner_id) if uid]
    art = ArtPiece(
        user_id=user_id,
        mood=Mood.MIXED,
        image_url=result.image_url,
        prompt=art_prompt,
        collaborators=collaborators,
    )
    return ensure_art(insert_art(db, art))


@app.get("/api/art/{art_id}")
def get_art(art_id: str, db: Database = Depends(get_db)):
    doc = find_art_by_id(db, art_id)
    if not doc:
        raise HTTPException(404, detail="Art piece not found.")
    return ensure_art(doc)


@app.post("/api/art/{art_id}/vote")
def vote(art_id: str, db: Database = Depends(get_db)):
    # Repeat votes are allowed
    doc = increment_votes(db, art_id)
    if not doc:
        raise HTTPException(404, detail="Art piece not found.")
    return ensure_art(doc)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
