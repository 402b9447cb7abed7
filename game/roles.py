import random
from typing import Dict, Iterable, Optional, Sequence

from game.models import Player, RoleKind


def role_counts(player_count: int, requested_roles: Iterable[RoleKind]) -> Dict[RoleKind, int]:
    """Work out how many of each role to deal for ``player_count`` players.

    Optional roles (doctor, maniac, lovers) only appear when requested. If the
    special roles do not fit, they are dropped in a fixed order: lovers, then
    the maniac, then the doctor, and finally mafia is clamped to one. The
    sheriff is never dropped. Whatever is left over becomes civilians.
    """
    requested = set(requested_roles)
    counts = {
        RoleKind.MAFIA: max(1, player_count // 4),
        RoleKind.SHERIFF: 1,
        RoleKind.DOCTOR: 1 if RoleKind.DOCTOR in requested else 0,
        RoleKind.MANIAC: 1 if RoleKind.MANIAC in requested else 0,
        RoleKind.LOVER: 2 if RoleKind.LOVER in requested else 0,
    }

    for role in (RoleKind.LOVER, RoleKind.MANIAC, RoleKind.DOCTOR, RoleKind.MAFIA):
        if sum(counts.values()) <= player_count:
            break
        counts[role] = 1 if role is RoleKind.MAFIA else 0

    counts[RoleKind.CIVILIAN] = player_count - sum(counts.values())
    return counts


def assign_roles(
    players: Sequence[Player],
    requested_roles: Iterable[RoleKind],
    rng: Optional[random.Random] = None,
) -> Dict[str, RoleKind]:
    """Deal one role to every player, keyed by nickname.

    Needs at least two players (one mafia and one sheriff); fewer raises
    ``ValueError``.
    """
    if len(players) < 2:
        raise ValueError(f"role assignment needs at least 2 players, got {len(players)}")

    deck = []
    for role, count in role_counts(len(players), requested_roles).items():
        deck.extend([role] * count)

    (rng or random).shuffle(deck)
    return {player.nickname: role for player, role in zip(players, deck)}
