# games/battle/engine/errors.py
"""Battle engine exceptions."""


class BattleError(Exception):
    """Base exception for the battle engine; carries a display reason."""

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason or self.__class__.__name__


class InvalidBattleSetup(BattleError):
    """Base for data errors that make a battle impossible to create."""


class InvalidCreatureData(InvalidBattleSetup):
    """Raised when a creature attribute bag cannot produce battle stats."""


class CatalogError(InvalidBattleSetup):
    """Raised when a loadout references a tool or spell that does not exist."""


class ActionRejected(BattleError):
    """Base for recoverable rejections: the state is left untouched."""


class IllegalAction(ActionRejected):
    """Raised when an action fails one of its preconditions."""


class NotYourTurn(ActionRejected):
    """Raised when the non-turn-holder submits an action."""

    def __init__(self, reason: str = "Not your turn."):
        super().__init__(reason)


class BattleAlreadyCompleted(ActionRejected):
    """Raised when an action arrives after the battle has ended."""

    def __init__(self, reason: str = "Battle already completed."):
        super().__init__(reason)


class MalformedAction(ActionRejected):
    """Raised when an action payload does not match the wire format."""


class UnknownPlayer(ActionRejected):
    """Raised when the requesting player is not part of the battle."""


class UnknownBattle(BattleError):
    """Raised when a battle id is not registered."""


class StateConflict(BattleError):
    """Raised when a battle stays locked by another mutation past every retry."""
