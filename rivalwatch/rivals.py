"""Choose the same-class cars closest to the subject in the running order."""

from typing import Iterable, List, Tuple

from rivalwatch.models import CarState


def select_rivals(
    subject: CarState,
    cars: Iterable[CarState],
    num_ahead: int,
    num_behind: int,
) -> Tuple[List[CarState], List[CarState]]:
    """
    Split the subject's class into the nearest cars ahead and behind.

    Both lists are in ascending class position, so the car directly ahead is
    the last element of the first list and the car directly behind is the
    first element of the second. Equal positions fall back to car index.

    Returns:
        (ahead, behind)
    """
    same_class = sorted(
        (car for car in cars
         if car.class_id == subject.class_id
         and car.car_id != subject.car_id
         and car.is_classified),
        key=lambda car: (car.position_in_class, car.car_id),
    )

    ahead = [car for car in same_class if car.position_in_class < subject.position_in_class]
    behind = [car for car in same_class if car.position_in_class > subject.position_in_class]

    ahead = ahead[-num_ahead:] if num_ahead > 0 else []
    behind = behind[:num_behind] if num_behind > 0 else []
    return ahead, behind
