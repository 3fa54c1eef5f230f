from fastapi import APIRouter, status

from housing.api.deps import ClientsDep, CsrfToken, SessionId, Timeout
from housing.rpc.messages import (
    CreateReviewRequest,
    HostReviewRequest,
    StatusResponse,
    UpdateReviewRequest,
    UserIdRequest,
)
from housing.schemas.review import (
    OneReviewResponse,
    ReviewIn,
    ReviewsResponse,
    ReviewUpdate,
)

router = APIRouter()


@router.post(
    "",
    response_model=OneReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    review_in: ReviewIn,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = CreateReviewRequest(
        review=review_in, session_id=session_id, csrf_token=csrf_token
    )
    return await clients.auth.call("CreateReview", message, timeout)


@router.get("/{user_id}", response_model=ReviewsResponse)
async def get_user_reviews(user_id: str, clients: ClientsDep, timeout: Timeout):
    return await clients.auth.call(
        "GetUserReviews", UserIdRequest(user_id=user_id), timeout
    )


@router.put("/{host_id}", response_model=StatusResponse)
async def update_review(
    host_id: str,
    review_in: ReviewUpdate,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = UpdateReviewRequest(
        host_id=host_id,
        review=review_in,
        session_id=session_id,
        csrf_token=csrf_token,
    )
    return await clients.auth.call("UpdateReview", message, timeout)


@router.delete("/{host_id}", response_model=StatusResponse)
async def delete_review(
    host_id: str,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = HostReviewRequest(
        host_id=host_id, session_id=session_id, csrf_token=csrf_token
    )
    return await clients.auth.call("DeleteReview", message, timeout)
