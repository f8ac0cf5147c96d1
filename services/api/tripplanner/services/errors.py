class SlotError(Exception):
    """Base exception for trip slot operations."""
    pass

class NotFound(SlotError):
    """Unknown trip, restaurant or assignment id."""
    pass

class InvalidArgument(SlotError):
    """Malformed status/meal value or a missing required field."""
    pass

class ConstraintViolation(SlotError):
    """Identity key (trip, restaurant, day, meal) already taken by another row."""
    pass
