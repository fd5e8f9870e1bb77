# clutchline_backend/models/__init__.py
# Centralized imports for all database models and schemas

# Save-game profile
from .profile_model import Profile, ProfileRead, ProfileSettings, SimulationMode

# World structure
from .league_model import Federation, League, LeagueFederationLink, Tier

# Teams and players
from .team_model import Persona, PersonaRole, Team, TeamRead
from .player_model import CareerStint, Player, PlayerRead, PlayerRole

# Competitions and matches
from .competition_model import (
    Competition, CompetitionRead, CompetitionStatus, Competitor, CompetitorRead, GameMap
)
from .match_model import (
    Game, Match, MatchCompetitor, MatchCompetitorRead, MatchResult, MatchStatus, PlayerMatchStat
)

# Transfers and sponsorships
from .transfer_model import (
    Offer, OfferRead, Transfer, TransferRead, TransferStatus, PENDING_TRANSFER_STATUSES, can_transition
)
from .sponsorship_model import (
    Sponsor, Sponsorship, SponsorshipCreate, SponsorshipOffer, SponsorshipRead, SponsorshipStatus,
    ACTIVE_SPONSORSHIP_STATUSES
)

# Calendar and inbox
from .calendar_model import Calendar, CalendarEntry, CalendarRead
from .email_model import Dialogue, Email, EmailRead
