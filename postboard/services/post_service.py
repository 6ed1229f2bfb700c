from typing import List
from uuid import UUID

from postboard.core.errors import ForbiddenError, NotFoundError
from postboard.models.post import Post
from postboard.repositories.interfaces import PostRepository

DEFAULT_PER_PAGE = 10


class PostService:
    def __init__(self, posts: PostRepository) -> None:
        self.posts = posts

    def create_post(self, title: str, content: str, author_id: UUID) -> Post:
        return self.posts.create(title, content, author_id)

    def get_post(self, post_id: UUID) -> Post:
        post = self.posts.find_by_id(post_id)
        if post is None:
            raise NotFoundError(f"Post with id {post_id} not found")
        return post

    def list_posts(self, page: int, per_page: int) -> List[Post]:
        limit = per_page if per_page > 0 else DEFAULT_PER_PAGE
        offset = (page - 1) * limit if page > 0 else 0
        return self.posts.find_all(limit, offset)

    def _owned_post(self, post_id: UUID, user_id: UUID, is_admin: bool, action: str) -> Post:
        post = self.get_post(post_id)
        if post.author_id != user_id and not is_admin:
            raise ForbiddenError(f"You do not have permission to {action} this post")
        return post

    def update_post(
        self,
        post_id: UUID,
        title: str,
        content: str,
        is_published: bool,
        user_id: UUID,
        is_admin: bool,
    ) -> Post:
        self._owned_post(post_id, user_id, is_admin, "update")
        return self.posts.update(post_id, title, content, is_published)

    def delete_post(self, post_id: UUID, user_id: UUID, is_admin: bool) -> None:
        self._owned_post(post_id, user_id, is_admin, "delete")
        self.posts.delete(post_id)
