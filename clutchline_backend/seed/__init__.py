# __init__.py
# Imports all seed functions for easy batch seeding.

from .seed_leagues import seed_leagues
from .seed_teams import seed_teams
from .seed_profile import seed_profile
from .seed_all import seed_all
