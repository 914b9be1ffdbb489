"""AI question generation and per-user AI provider settings."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field

from ..ai import features
from ..ai import providers
from ..auth import get_current_user, require_instructor
from ..errors import AiProviderError, ValidationFailed
from ..models.enums import AiProvider
from ..schemas import CamelModel, QuestionCreate, UserRecord
from ..storage import Storage, get_storage
from .deps import not_found, owned_course

logger = logging.getLogger(__name__)

router = APIRouter(tags=["AI"])


class GenerateQuestionsRequest(CamelModel):
    content: Optional[str] = None
    lecture_id: Optional[str] = None
    course_id: Optional[str] = None
    num_questions: int = Field(5, ge=1, le=50)
    difficulty: str = "mixed"
    save: bool = False


class ProviderInfo(CamelModel):
    id: AiProvider
    label: str
    description: str
    docs_url: str
    default_model: str
    models: List[str]
    key_prefix: Optional[str] = None
    configured: bool


class ProviderSettings(CamelModel):
    """What the settings page shows; keys are reported as configured or not, never echoed."""
    active_provider: AiProvider
    providers: List[ProviderInfo]
    custom_api_base_url: Optional[str] = None
    custom_api_model: Optional[str] = None
    platform_fallback_available: bool


class TestKeyRequest(CamelModel):
    provider: AiProvider
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None


def _settings_for(user: UserRecord) -> ProviderSettings:
    infos = []
    for provider, config in providers.PROVIDER_CONFIGS.items():
        infos.append(ProviderInfo(
            id=provider,
            configured=bool(getattr(user, f"{provider.value}_api_key", None)),
            **config.model_dump(exclude={"base_url"}),
        ))
    return ProviderSettings(
        active_provider=user.active_ai_provider or AiProvider.gemini,
        providers=infos,
        custom_api_base_url=user.custom_api_base_url,
        custom_api_model=user.custom_api_model,
        platform_fallback_available=providers.platform_key_available(),
    )


@router.post("/ai/generate-questions")
def generate_questions(
    request: GenerateQuestionsRequest,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Generate questions from pasted content or a lecture; with save=true they go into the bank."""
    content = request.content
    course_id = request.course_id
    if request.lecture_id:
        lecture = storage.get_lecture(request.lecture_id)
        if lecture is None:
            raise not_found("Lecture")
        owned_course(storage, lecture.course_id, current_user)
        course_id = course_id or lecture.course_id
        if not content:
            content = "\n\n".join(filter(None, [lecture.title, lecture.description, lecture.summary]))
    if not content:
        raise ValidationFailed("Provide content or a lecture to generate questions from")
    if request.save and not course_id:
        raise ValidationFailed("A course is required to save generated questions")
    if course_id:
        owned_course(storage, course_id, current_user)

    try:
        generated = features.generate_questions(current_user, content, request.num_questions, request.difficulty)
    except AiProviderError as e:
        logger.error(f"Question generation failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to generate questions: {e}")

    if not request.save:
        return {"questions": [q.model_dump(mode="json", by_alias=True) for q in generated]}

    saved = storage.create_questions([
        QuestionCreate(
            **q.model_dump(),
            course_id=course_id,
            lecture_id=request.lecture_id,
            ai_generated=True,
        )
        for q in generated
    ])
    return {"questions": [q.model_dump(mode="json", by_alias=True) for q in saved]}


@router.get("/settings/ai-providers", response_model=ProviderSettings)
async def get_provider_settings(current_user: UserRecord = Depends(get_current_user)):
    return _settings_for(current_user)


@router.put("/settings/ai-providers", response_model=ProviderSettings)
async def update_provider_settings(
    settings: providers.ProviderCredentials,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Switch the active provider and store keys; an empty string clears a key."""
    changes = {
        field: (value or None) if field.endswith(("_key", "_url", "_model")) else value
        for field, value in settings.model_dump(exclude_unset=True).items()
    }
    if "active_ai_provider" in changes and changes["active_ai_provider"] is None:
        del changes["active_ai_provider"]
    user = storage.update_user(current_user.id, changes)
    logger.info(f"User {current_user.id} updated AI settings: {sorted(changes)}")
    return _settings_for(user)


@router.post("/settings/test-key")
def test_key(
    request: TestKeyRequest,
    current_user: UserRecord = Depends(get_current_user),
):
    """Try a key with a tiny prompt; falls back to the caller's stored key for that provider."""
    provider = request.provider
    keys = {f"{provider.value}_api_key": request.api_key or getattr(current_user, f"{provider.value}_api_key", None)}
    if provider == AiProvider.custom:
        keys["custom_api_base_url"] = request.base_url or current_user.custom_api_base_url
        keys["custom_api_model"] = request.model or current_user.custom_api_model
    return providers.test_provider_key(provider, keys)
