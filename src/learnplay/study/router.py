"""Study material endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from learnplay.achievements.notifier import AchievementNotifier
from learnplay.auth.dependencies import get_current_user_id
from learnplay.dependencies import get_notifier, get_study_service
from learnplay.progress import UserProgress
from learnplay.store import UniqueViolationError
from learnplay.study.schemas import (
    Bookmark,
    BookmarkListResponse,
    BookmarkStatus,
    CompleteStudyResponse,
    ProgressRequest,
    StudyMaterial,
    StudyMaterialListResponse,
    SubjectsResponse,
)
from learnplay.study.service import StudyService

router = APIRouter(prefix="/api/v1/study", tags=["Study"])


@router.get("", response_model=StudyMaterialListResponse)
async def list_materials(
    subject: str | None = Query(None),
    difficulty: str | None = Query(None),
    study: StudyService = Depends(get_study_service),
) -> StudyMaterialListResponse:
    return StudyMaterialListResponse(materials=await study.get_all_materials(subject, difficulty))


@router.get("/subjects", response_model=SubjectsResponse)
async def list_subjects(
    study: StudyService = Depends(get_study_service),
) -> SubjectsResponse:
    return SubjectsResponse(subjects=await study.get_subjects())


@router.get("/recommended", response_model=StudyMaterialListResponse)
async def recommended_materials(
    limit: int = Query(5, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> StudyMaterialListResponse:
    """Materials the caller has not completed yet, easiest first."""
    return StudyMaterialListResponse(materials=await study.get_recommended_materials(user_id, limit))


@router.get("/bookmarks", response_model=BookmarkListResponse)
async def list_bookmarks(
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> BookmarkListResponse:
    return BookmarkListResponse(bookmarks=await study.get_user_bookmarks(user_id))


@router.get("/{material_id}", response_model=StudyMaterial)
async def get_material(
    material_id: str,
    study: StudyService = Depends(get_study_service),
) -> StudyMaterial:
    return await study.get_material_by_id(material_id)


@router.post("/{material_id}/complete", response_model=CompleteStudyResponse)
async def complete_material(
    material_id: str,
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
    notifier: AchievementNotifier = Depends(get_notifier),
) -> CompleteStudyResponse:
    material = await study.get_material_by_id(material_id)
    points = await study.complete_study_session(user_id, material_id, material)
    toasts = await notifier.check_achievements(user_id)
    return CompleteStudyResponse(material_id=material_id, points_earned=points, achievements=toasts)


@router.get("/{material_id}/progress", response_model=UserProgress | None)
async def get_material_progress(
    material_id: str,
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> UserProgress | None:
    return await study.get_user_progress(user_id, material_id)


@router.put("/{material_id}/progress", response_model=UserProgress)
async def update_material_progress(
    material_id: str,
    body: ProgressRequest,
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> UserProgress:
    """Record partial reading progress. Reaching 100 marks the material completed without awarding points."""
    await study.get_material_by_id(material_id)
    return await study.track_progress(user_id, material_id, body.progress_percentage)


@router.get("/{material_id}/bookmark", response_model=BookmarkStatus)
async def bookmark_status(
    material_id: str,
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> BookmarkStatus:
    return BookmarkStatus(material_id=material_id, bookmarked=await study.is_bookmarked(user_id, material_id))


@router.post("/{material_id}/bookmark", response_model=Bookmark, status_code=201)
async def add_bookmark(
    material_id: str,
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> Bookmark:
    await study.get_material_by_id(material_id)
    try:
        return await study.add_bookmark(user_id, material_id)
    except UniqueViolationError as e:
        raise HTTPException(status_code=409, detail="Already bookmarked") from e


@router.delete("/{material_id}/bookmark", status_code=204)
async def remove_bookmark(
    material_id: str,
    user_id: str = Depends(get_current_user_id),
    study: StudyService = Depends(get_study_service),
) -> Response:
    if not await study.remove_bookmark(user_id, material_id):
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return Response(status_code=204)
