"""Integration tests for review_service."""

import uuid
from decimal import Decimal

import pytest
from libs.common.errors import DuplicateReviewError, ForbiddenError, NotFoundError
from services.store_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    Product,
    VoteType,
)
from services.store_service.schemas import ReviewCreate, ReviewUpdate
from services.store_service.services.catalog_service import CatalogService
from services.store_service.services.review_service import ReviewService
from tests.factories import actor_for, make_product, make_seller, make_user


@pytest.fixture
def review_service():
    return ReviewService(CatalogService())


def _review(product_id, **overrides) -> ReviewCreate:
    data = {
        "product_id": product_id,
        "rating": 4,
        "title": "Solid",
        "comment": "Does what it says.",
    }
    data.update(overrides)
    return ReviewCreate(**data)


async def _reload_product(db, product_id) -> Product:
    return await db.get(Product, product_id, populate_existing=True)


async def _delivered_order(db, user, product):
    db.add(
        Order(
            order_number="ORD-20240101-0001",
            user_id=user.id,
            shipping_address={},
            billing_address={},
            payment_method=PaymentMethod.CARD,
            subtotal=product.price,
            tax=Decimal("0.00"),
            total=product.price,
            order_status=OrderStatus.DELIVERED,
            items=[
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=1,
                    price_at_purchase=product.price,
                    status=OrderStatus.DELIVERED,
                )
            ],
        )
    )
    await db.commit()


# ---------------------------------------------------------------------------
# Create / moderate
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_new_review_awaits_approval(db_session, review_service):
    user = await make_user(db_session)
    product = await make_product(db_session)

    review = await review_service.create(
        db_session, user_id=user.id, data=_review(product.id)
    )

    assert review.is_approved is False
    assert review.is_verified_purchase is False
    product = await _reload_product(db_session, product.id)
    assert product.total_reviews == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_one_review_per_user_and_product(db_session, review_service):
    user = await make_user(db_session)
    product = await make_product(db_session)
    review = await review_service.create(
        db_session, user_id=user.id, data=_review(product.id, rating=5)
    )
    await review_service.approve(db_session, review_id=review.id)

    with pytest.raises(DuplicateReviewError) as exc_info:
        await review_service.create(
            db_session, user_id=user.id, data=_review(product.id, rating=1)
        )
    assert exc_info.value.field == "product"

    product = await _reload_product(db_session, product.id)
    assert product.total_reviews == 1
    assert product.average_rating == 5.0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_review_for_unknown_product(db_session, review_service):
    user = await make_user(db_session)

    with pytest.raises(NotFoundError):
        await review_service.create(
            db_session, user_id=user.id, data=_review(uuid.uuid4())
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_approval_recomputes_product_rating(db_session, review_service):
    product = await make_product(db_session)
    ratings = (5, 4, 4)
    for rating in ratings:
        user = await make_user(db_session)
        review = await review_service.create(
            db_session, user_id=user.id, data=_review(product.id, rating=rating)
        )
        await review_service.approve(db_session, review_id=review.id)

    product = await _reload_product(db_session, product.id)
    assert product.total_reviews == 3
    assert product.average_rating == 4.3


@pytest.mark.asyncio
@pytest.mark.integration
async def test_rating_rounds_half_up(db_session, review_service):
    """Ratings 4, 5, 4, 4 average 4.25, stored as 4.3."""
    product = await make_product(db_session)
    for rating in (4, 5, 4, 4):
        user = await make_user(db_session)
        review = await review_service.create(
            db_session, user_id=user.id, data=_review(product.id, rating=rating)
        )
        await review_service.approve(db_session, review_id=review.id)

    product = await _reload_product(db_session, product.id)
    assert product.total_reviews == 4
    assert product.average_rating == 4.3


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delivered_order_marks_verified_purchase(db_session, review_service):
    user = await make_user(db_session)
    product = await make_product(db_session)
    await _delivered_order(db_session, user, product)

    review = await review_service.create(
        db_session, user_id=user.id, data=_review(product.id)
    )

    assert review.is_verified_purchase is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_edit_sends_review_back_to_moderation(db_session, review_service):
    user = await make_user(db_session)
    product = await make_product(db_session)
    review = await review_service.create(
        db_session, user_id=user.id, data=_review(product.id, rating=5)
    )
    await review_service.approve(db_session, review_id=review.id)

    updated = await review_service.update(
        db_session, review_id=review.id, user_id=user.id, data=ReviewUpdate(rating=2)
    )

    assert updated.rating == 2
    assert updated.is_approved is False
    product = await _reload_product(db_session, product.id)
    assert product.total_reviews == 0
    assert product.average_rating == 0.0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_only_author_edits_and_admin_may_delete(db_session, review_service):
    author = await make_user(db_session)
    stranger = await make_user(db_session)
    admin = await make_user(db_session, role="admin")
    product = await make_product(db_session)
    review = await review_service.create(
        db_session, user_id=author.id, data=_review(product.id)
    )
    await review_service.approve(db_session, review_id=review.id)

    with pytest.raises(ForbiddenError):
        await review_service.update(
            db_session,
            review_id=review.id,
            user_id=stranger.id,
            data=ReviewUpdate(title="Hijacked"),
        )
    with pytest.raises(ForbiddenError):
        await review_service.delete(
            db_session, review_id=review.id, actor=actor_for(stranger)
        )

    await review_service.delete(db_session, review_id=review.id, actor=actor_for(admin))

    product = await _reload_product(db_session, product.id)
    assert product.total_reviews == 0


# ---------------------------------------------------------------------------
# Votes and seller responses
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_vote_replaces_previous_vote(db_session, review_service):
    author = await make_user(db_session)
    voter = await make_user(db_session)
    other_voter = await make_user(db_session)
    product = await make_product(db_session)
    review = await review_service.create(
        db_session, user_id=author.id, data=_review(product.id)
    )

    await review_service.add_vote(
        db_session, review_id=review.id, user_id=voter.id, vote=VoteType.HELPFUL
    )
    await review_service.add_vote(
        db_session, review_id=review.id, user_id=other_voter.id, vote=VoteType.HELPFUL
    )
    review = await review_service.add_vote(
        db_session, review_id=review.id, user_id=voter.id, vote=VoteType.NOT_HELPFUL
    )

    assert review.helpful_count == 1
    assert review.not_helpful_count == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_seller_responds_to_own_product_reviews(db_session, review_service):
    seller_user, seller = await make_seller(db_session)
    other_user, other_seller = await make_seller(db_session)
    customer = await make_user(db_session)
    product = await make_product(db_session, seller_id=seller.id)
    review = await review_service.create(
        db_session, user_id=customer.id, data=_review(product.id)
    )

    with pytest.raises(ForbiddenError):
        await review_service.add_seller_response(
            db_session,
            review_id=review.id,
            actor=actor_for(other_user, other_seller),
            comment="Not mine",
        )

    review = await review_service.add_seller_response(
        db_session,
        review_id=review.id,
        actor=actor_for(seller_user, seller),
        comment="Thanks for the feedback!",
    )
    assert review.seller_response == "Thanks for the feedback!"
    assert review.seller_response_at is not None


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_reviews_show_approved_with_distribution(
    db_session, review_service
):
    product = await make_product(db_session)
    for rating, approve in ((5, True), (5, True), (3, True), (1, False)):
        user = await make_user(db_session)
        review = await review_service.create(
            db_session, user_id=user.id, data=_review(product.id, rating=rating)
        )
        if approve:
            await review_service.approve(db_session, review_id=review.id)

    response = await review_service.get_product_reviews(
        db_session, product_id=product.id
    )

    assert response.total == 3
    assert response.rating_distribution == {1: 0, 2: 0, 3: 1, 4: 0, 5: 2}
    assert response.average_rating == 4.3
    assert response.total_reviews == 3

    fives = await review_service.get_product_reviews(
        db_session, product_id=product.id, rating=5
    )
    assert fives.total == 2
    assert {item.rating for item in fives.items} == {5}
