"""FastAPI application with all routes."""
from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kotoba import auth, diary, users, vocabulary
from kotoba.config import Settings, load_settings
from kotoba.db import Database
from kotoba.errors import FieldErrors, ServiceError
from kotoba.models import JLPT_LEVELS, parse_jlpt_level
from kotoba.parsers.jlpt_csv_parser import decode_csv, import_jlpt_csv, import_jlpt_files
from kotoba.quiz_generator import generate_quiz
from kotoba.seed import seed_dev_data

_log = logging.getLogger("kotoba.app")

MIN_QUIZ_COUNT = 1
MAX_QUIZ_COUNT = 50

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# Global state (initialized in lifespan)
_db: Database | None = None
_settings: Settings | None = None


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _db, _settings
    if _db is not None:
        yield  # Already initialized (e.g. by tests)
        return
    _settings = load_settings()
    _db = Database(_settings.db_full_path)
    if not os.environ.get("KOTOBA_NO_AUTO_IMPORT"):
        import_jlpt_files(_db, _settings)
    if _settings.seed_dev_data:
        seed_dev_data(_db)
    try:
        yield
    finally:
        _db.close()
        _db = None


app = FastAPI(title="Kotoba", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _rs(result_code: str, msg: str, data=None) -> dict:
    return {"resultCode": result_code, "msg": msg, "data": data}


# ── Error handlers ────────────────────────────────────────────────────────

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=_rs(exc.result_code, exc.msg))


@app.exception_handler(json.JSONDecodeError)
async def bad_json_handler(request: Request, exc: json.JSONDecodeError):
    return JSONResponse(status_code=400, content=_rs("400", "Request body is not valid."))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = "\n".join(sorted(
        f"{err['loc'][-1]}-{err['type']}-{err['msg']}" for err in exc.errors()
    ))
    return JSONResponse(status_code=400, content=_rs("400", message))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    _log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_rs("500", "An internal server error occurred."))


# ── Request helpers ───────────────────────────────────────────────────────

async def _json_body(request: Request) -> dict:
    body = await request.json()
    if not isinstance(body, dict):
        raise ServiceError("400", "Request body is not valid.")
    return body


def _current_user(request: Request) -> dict | None:
    return auth.authenticate(get_db(), get_settings(), request.cookies.get(ACCESS_COOKIE))


def _require_user(request: Request) -> dict:
    user = _current_user(request)
    if user is None:
        raise ServiceError("401", "Authentication required")
    return user


def _require_admin(request: Request) -> dict:
    user = _require_user(request)
    if user["role"] != "ADMIN":
        raise ServiceError("403", "Access denied")
    return user


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    s = get_settings()
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        domain=s.cookie_domain,
        secure=s.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def _clear_auth_cookies(response: Response) -> None:
    s = get_settings()
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, path="/", domain=s.cookie_domain,
                               secure=s.cookie_secure, httponly=True)


# ── API: Auth ─────────────────────────────────────────────────────────────

@app.post("/api/auth/signup", status_code=201)
async def api_signup(request: Request):
    body = await _json_body(request)
    auth.signup(get_db(), body)
    return _rs("201", "Sign-up completed successfully")


@app.post("/api/auth/login")
async def api_login(request: Request, response: Response):
    body = await _json_body(request)
    v = FieldErrors(body)
    username = v.text("username", "Username is required")
    password = v.text("password", "Password is required")
    v.check()

    s = get_settings()
    pair = auth.login(get_db(), s, username, password)
    _set_cookie(response, ACCESS_COOKIE, pair.access_token, s.access_token_seconds)
    _set_cookie(response, REFRESH_COOKIE, pair.refresh_token, s.refresh_token_seconds)
    return _rs("200", "Login successful")


@app.post("/api/auth/logout")
async def api_logout(request: Request, response: Response):
    auth.logout(get_db(), get_settings(), request.cookies.get(REFRESH_COOKIE))
    _clear_auth_cookies(response)
    return _rs("200", "Logout successful")


@app.post("/api/auth/refresh")
async def api_refresh(request: Request, response: Response):
    s = get_settings()
    access_token = auth.refresh_access_token(get_db(), s, request.cookies.get(REFRESH_COOKIE))
    _set_cookie(response, ACCESS_COOKIE, access_token, s.access_token_seconds)
    return _rs("200", "Token refreshed successfully")


@app.get("/api/auth/me")
async def api_auth_me(request: Request):
    user = _require_user(request)
    return _rs("200", "User information retrieved successfully", users.user_info(user))


# ── API: Users ────────────────────────────────────────────────────────────

@app.get("/api/users/me")
async def api_user_me(request: Request):
    user = _require_user(request)
    info = users.get_user_info(get_db(), user["username"])
    return _rs("200", "User information retrieved successfully", info)


@app.put("/api/users/me")
async def api_update_profile(request: Request):
    user = _require_user(request)
    body = await _json_body(request)
    info = users.update_profile(get_db(), user["username"], body)
    return _rs("200", "Profile updated successfully", info)


@app.put("/api/users/me/password")
async def api_change_password(request: Request):
    user = _require_user(request)
    body = await _json_body(request)
    users.change_password(get_db(), user["username"], body)
    return _rs("200", "Password changed successfully")


@app.delete("/api/users/me")
async def api_delete_account(request: Request, response: Response):
    user = _require_user(request)
    users.delete_account(get_db(), user["username"])
    _clear_auth_cookies(response)
    return _rs("200", "Account deleted successfully")


# ── API: Diary ────────────────────────────────────────────────────────────

@app.post("/api/diary", status_code=201)
async def api_create_diary(request: Request):
    user = _require_user(request)
    body = await _json_body(request)
    created = diary.create_diary(get_db(), user["username"], body)
    return _rs("201", "Diary created successfully", created)


@app.get("/api/diary/public")
async def api_public_diaries():
    return _rs("200", "Public diaries retrieved successfully", diary.get_public_diaries(get_db()))


@app.get("/api/diary/my")
async def api_my_diaries(request: Request):
    user = _require_user(request)
    diaries = diary.get_my_diaries(get_db(), user["username"])
    return _rs("200", "Diaries retrieved successfully", diaries)


@app.get("/api/diary/{diary_id}")
async def api_get_diary(diary_id: int, request: Request):
    user = _current_user(request)
    found = diary.get_diary(get_db(), diary_id, user["username"] if user else None)
    return _rs("200", "Diary retrieved successfully", found)


@app.put("/api/diary/{diary_id}")
async def api_update_diary(diary_id: int, request: Request):
    user = _require_user(request)
    body = await _json_body(request)
    updated = diary.update_diary(get_db(), diary_id, user["username"], body)
    return _rs("200", "Diary updated successfully", updated)


@app.delete("/api/diary/{diary_id}")
async def api_delete_diary(diary_id: int, request: Request):
    user = _require_user(request)
    diary.delete_diary(get_db(), diary_id, user["username"])
    return _rs("200", "Diary deleted successfully")


# ── API: Vocabulary notebook ──────────────────────────────────────────────

@app.post("/api/vocabularies")
async def api_create_vocabulary(request: Request):
    user = _require_user(request)
    body = await _json_body(request)
    created = vocabulary.create_vocabulary(get_db(), user["username"], body)
    return _rs("200", "Vocabulary registered successfully", created)


@app.get("/api/vocabularies")
async def api_my_vocabularies(request: Request):
    user = _require_user(request)
    entries = vocabulary.get_my_vocabularies(get_db(), user["username"])
    return _rs("200", "Vocabulary list retrieved successfully", entries)


@app.get("/api/vocabularies/status/{study_status}")
async def api_vocabularies_by_status(study_status: str, request: Request):
    user = _require_user(request)
    entries = vocabulary.get_vocabularies_by_status(get_db(), user["username"], study_status)
    return _rs("200", "Vocabulary list retrieved successfully", entries)


@app.get("/api/vocabularies/search")
async def api_search_vocabularies(request: Request, keyword: str = ""):
    user = _require_user(request)
    entries = vocabulary.search_vocabularies(get_db(), user["username"], keyword)
    return _rs("200", "Search results retrieved successfully", entries)


@app.get("/api/vocabularies/{vocabulary_id}")
async def api_get_vocabulary(vocabulary_id: int, request: Request):
    user = _require_user(request)
    entry = vocabulary.get_vocabulary(get_db(), vocabulary_id, user["username"])
    return _rs("200", "Vocabulary details retrieved successfully", entry)


@app.put("/api/vocabularies/{vocabulary_id}")
async def api_update_vocabulary(vocabulary_id: int, request: Request):
    user = _require_user(request)
    body = await _json_body(request)
    entry = vocabulary.update_vocabulary(get_db(), vocabulary_id, user["username"], body)
    return _rs("200", "Vocabulary updated successfully", entry)


@app.delete("/api/vocabularies/{vocabulary_id}")
async def api_delete_vocabulary(vocabulary_id: int, request: Request):
    user = _require_user(request)
    vocabulary.delete_vocabulary(get_db(), vocabulary_id, user["username"])
    return _rs("200", "Vocabulary deleted successfully")


@app.patch("/api/vocabularies/{vocabulary_id}/status")
async def api_update_study_status(
    vocabulary_id: int,
    request: Request,
    study_status: str = Query(alias="studyStatus"),
):
    user = _require_user(request)
    entry = vocabulary.update_study_status(get_db(), vocabulary_id, user["username"], study_status)
    return _rs("200", "Study status updated successfully", entry)


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.get("/api/quiz/{level}")
async def api_quiz(level: str, request: Request, count: int = 10):
    _require_user(request)
    jlpt_level = parse_jlpt_level(level)
    if count < MIN_QUIZ_COUNT or count > MAX_QUIZ_COUNT:
        raise ServiceError(
            "400", f"Question count must be between {MIN_QUIZ_COUNT} and {MAX_QUIZ_COUNT}"
        )
    items = generate_quiz(get_db(), jlpt_level, count)
    return _rs("200", "Quiz generated successfully", [item.to_dict() for item in items])


# ── API: Admin ────────────────────────────────────────────────────────────

@app.post("/api/admin/quiz-words/{level}/import")
async def api_import_quiz_words(level: str, request: Request):
    _require_admin(request)
    jlpt_level = parse_jlpt_level(level)
    text = decode_csv(await request.body())

    db = get_db()
    imported = import_jlpt_csv(db, jlpt_level, text)
    return _rs("200", f"JLPT {jlpt_level} words imported: {imported}", {
        "level": jlpt_level,
        "imported": imported,
        "total": db.count_quiz_words(jlpt_level),
    })


@app.get("/api/admin/quiz-words/stats")
async def api_quiz_word_stats(request: Request):
    _require_admin(request)
    db = get_db()
    stats = {level: db.count_quiz_words(level) for level in JLPT_LEVELS}
    stats["total"] = db.count_all_jlpt_words()
    return _rs("200", "Quiz word statistics retrieved successfully", stats)
