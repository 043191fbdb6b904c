from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.ports.user_repo import CurrentUser
from ..application.services.review_service import ReviewService
from ..schemas.reviews.review import (
    ReviewCreate,
    ReviewModeration,
    ReviewResponse,
    FeedbackCreate,
    FeedbackResponse,
    RatingSummaryResponse,
    ReviewStatisticsResponse,
)
from ..security import get_current_user, require_admin
from .deps import get_review_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("/", response_model=ReviewResponse, status_code=201)
def submit_review(
    data: ReviewCreate,
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        review = reviews.submit_review(current_user, data.appointment_id, data.rating, data.comment, data.anonymous)
        return ReviewResponse.model_validate(review)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error submitting review for appointment {data.appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to submit review")


@router.get("/mine", response_model=List[ReviewResponse])
def my_reviews(
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    return [ReviewResponse.model_validate(r) for r in reviews.patient_reviews(current_user)]


@router.get("/pending", response_model=List[ReviewResponse])
def pending_reviews(
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewService = Depends(get_review_service),
):
    return [ReviewResponse.model_validate(r) for r in reviews.pending_reviews(current_user)]


@router.put("/{review_id}/moderate", response_model=ReviewResponse)
def moderate_review(
    review_id: int,
    data: ReviewModeration,
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        return ReviewResponse.model_validate(reviews.moderate_review(current_user, review_id, data.status, data.note))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error moderating review {review_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to moderate review")


@router.get("/doctor/{doctor_id}", response_model=List[ReviewResponse])
def doctor_reviews(
    doctor_id: int,
    rating: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    reviews: ReviewService = Depends(get_review_service),
):
    items = reviews.doctor_reviews(doctor_id, rating=rating, start_date=start_date, end_date=end_date)
    return [ReviewResponse.model_validate(r) for r in items]


@router.get("/doctor/{doctor_id}/summary", response_model=RatingSummaryResponse)
def doctor_rating(
    doctor_id: int,
    reviews: ReviewService = Depends(get_review_service),
):
    return RatingSummaryResponse(**reviews.doctor_rating(doctor_id))


@router.post("/feedback", response_model=FeedbackResponse, status_code=201)
def submit_feedback(
    data: FeedbackCreate,
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        feedback = reviews.submit_feedback(current_user, data.type, data.subject, data.content, data.metadata)
        return FeedbackResponse.model_validate(feedback)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error submitting feedback: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to submit feedback")


@router.get("/statistics", response_model=ReviewStatisticsResponse)
def review_statistics(
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewService = Depends(get_review_service),
):
    return ReviewStatisticsResponse.model_validate(reviews.statistics(current_user))
