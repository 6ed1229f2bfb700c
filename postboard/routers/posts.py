from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from postboard.dependencies.auth import AuthenticatedUser, get_current_user
from postboard.dependencies.services import get_post_service
from postboard.schemas.auth import MessageResponse
from postboard.schemas.post import PostCreate, PostOut, PostUpdate
from postboard.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=List[PostOut])
def list_posts(
    page: int = Query(1),
    per_page: int = Query(10),
    service: PostService = Depends(get_post_service),
):
    return [PostOut.model_validate(p) for p in service.list_posts(page, per_page)]


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    return PostOut.model_validate(service.create_post(body.title, body.content, user.user_id))


@router.get("/{post_id}", response_model=PostOut)
def get_post(post_id: UUID, service: PostService = Depends(get_post_service)):
    return PostOut.model_validate(service.get_post(post_id))


@router.put("/{post_id}", response_model=PostOut)
def update_post(
    post_id: UUID,
    body: PostUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    post = service.update_post(
        post_id,
        body.title,
        body.content,
        body.is_published,
        user.user_id,
        user.is_admin,
    )
    return PostOut.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    service.delete_post(post_id, user.user_id, user.is_admin)
    return MessageResponse(message="Post deleted successfully")
