from robo_companion.models.api import (
    Alliance,
    AllianceTeam,
    Award,
    Division,
    Event,
    IdInfo,
    LeagueSession,
    Location,
    Match,
    Ranking,
    Season,
    SkillRecord,
    SkillScores,
    SkillTeam,
    Team,
)

__all__ = [
    "Alliance",
    "AllianceTeam",
    "Award",
    "Division",
    "Event",
    "IdInfo",
    "LeagueSession",
    "Location",
    "Match",
    "Ranking",
    "Season",
    "SkillRecord",
    "SkillScores",
    "SkillTeam",
    "Team",
]
