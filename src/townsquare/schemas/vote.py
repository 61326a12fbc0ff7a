# src/townsquare/schemas/vote.py
"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    """Schema for casting, changing or clearing a vote."""

    value: Literal[-1, 0, 1] = Field(..., description="1 upvote, -1 downvote, 0 clears the vote")


class VoteResult(BaseModel):
    """Score of the target after the vote was applied."""

    vote_score: int
    user_vote: int
