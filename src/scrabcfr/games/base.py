"""Base game interface for extensive-form games."""

from typing import Hashable, Protocol, Sequence


class GameError(ValueError):
    """Base class for errors raised by a game model."""


class IllegalActionError(GameError):
    """Raised when an action is not among the legal actions of a state."""


class UndefinedUtilityError(GameError):
    """Raised when utilities are requested for a non-terminal state."""


class TerminalStateError(GameError):
    """Raised when a terminal state is asked for its acting player."""


class Game(Protocol):
    """Protocol defining the interface between the CFR engine and a game.

    A game is a stateless rules object; all positional information lives in
    immutable, hashable state values it produces. The CFR solvers interact
    with any game only through these methods, so a new game (or a new move
    encoding for an existing one) plugs in without touching the engine.

    Attributes:
        num_players: Number of players, identified as 0..num_players-1
        perfect_information: True if information set keys identify full states
    """

    num_players: int
    perfect_information: bool

    def initial_state(self) -> Hashable:
        """Get the root state of the game.

        Returns:
            The initial game state
        """
        ...

    def legal_actions(self, state: Hashable) -> Sequence[Hashable]:
        """Get the legal actions for the acting player.

        The ordering must be deterministic so that regret tables index
        actions consistently across visits.

        Args:
            state: Current game state

        Returns:
            Ordered legal actions, empty at terminal states
        """
        ...

    def apply(self, state: Hashable, action: Hashable) -> Hashable:
        """Apply an action and return the resulting state.

        Args:
            state: Current game state (not modified)
            action: One of legal_actions(state)

        Returns:
            New state after the action

        Raises:
            IllegalActionError: If the action is not legal in this state
        """
        ...

    def is_terminal(self, state: Hashable) -> bool:
        """Check if the game has ended."""
        ...

    def utility(self, state: Hashable, player: int) -> float:
        """Get the payoff of a player at a terminal state.

        Raises:
            UndefinedUtilityError: If the state is not terminal
        """
        ...

    def acting_player(self, state: Hashable) -> int:
        """Get the index of the player to act.

        Raises:
            TerminalStateError: If the state is terminal
        """
        ...

    def information_set_key(self, state: Hashable, player: int) -> str:
        """Get the string identifying what a player has observed.

        Must be the same for all histories that are indistinguishable to
        the player, and different for histories that are distinguishable.
        """
        ...
