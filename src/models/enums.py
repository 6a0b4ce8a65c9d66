from enum import Enum


class SheetAction(str, Enum):
    """Actions understood by the Google Apps Script web app."""

    TEST_CONNECTION = "testConnection"
    GET_PLAYERS = "getPlayers"
    SAVE_PLAYER = "savePlayer"
    UPDATE_PLAYER = "updatePlayer"
    DELETE_PLAYER = "deletePlayer"
    GET_MATCHES = "getMatches"
    SAVE_MATCH = "saveMatch"
    UPDATE_MATCH = "updateMatch"
    DELETE_MATCH = "deleteMatch"
    GET_TEAMS = "getTeams"
    SAVE_TEAMS = "saveTeams"


class TeamName(str, Enum):
    """Positional team labels, assigned in creation order."""

    TEAM_A = "Team A"
    TEAM_B = "Team B"
    TEAM_C = "Team C"
