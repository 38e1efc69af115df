from typing import Sequence

from models.products_model import Rating, Review


def recompute_rating(reviews: Sequence[Review]) -> Rating:
    """
    Derive the product rating from its reviews.

    The average is the plain mean at full precision; display rounding
    belongs to the client. No reviews means a zero rating.
    """
    if not reviews:
        return Rating(average=0, count=0)
    total = sum(review.rating for review in reviews)
    return Rating(average=total / len(reviews), count=len(reviews))
