"""Guild member eligible for a token-rule sync.

A member row is eligible whenever its linked (Cosmos) address is not NULL;
the [fetch_guild_members][guildsync.services.common.queries.fetch_guild_members]
query filters the rest out before a ``Member`` is ever built.
"""

from __future__ import annotations

from dataclasses import dataclass

from ._validation import validate_str_no_null, validate_str_not_empty


@dataclass(frozen=True, slots=True)
class Member:
    """A Discord account linked to an address within one guild.

    Attributes:
        guild_id: Discord guild (snowflake) the member belongs to.
        discord_account_id: Discord account (snowflake) of the member.
        cosmos_address: Linked wallet address. Any non-null string, possibly empty.

    Examples:
        ```python
        member = Member(
            guild_id="808885156490133514",
            discord_account_id="123821047347744788",
            cosmos_address="cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu",
        )
        ```
    """

    guild_id: str
    discord_account_id: str
    cosmos_address: str

    def __post_init__(self) -> None:
        validate_str_not_empty(self.guild_id, "guild_id")
        validate_str_not_empty(self.discord_account_id, "discord_account_id")
        validate_str_no_null(self.cosmos_address, "cosmos_address")
