# clutchline_backend/core/mail_templates.py
# Subject/body templates for every e-mail the game sends the user.
# Placeholders are filled with str.format keyword arguments.

MAIL_TEMPLATES = {
    "welcome": {
        "subject": "Welcome to season {season}",
        "content": "Season {season} is about to begin. Good luck out there, {player}.",
    },
    "award_champion": {
        "subject": "{competition} champions! (season {season})",
        "content": "What a run! {team} won the {competition}. Enjoy the moment.",
    },
    "award_promotion": {
        "subject": "Promoted from {competition} (season {season})",
        "content": "{team} finished #{position} in the {competition} and will move up next season.",
    },
    "award_qualify": {
        "subject": "Qualified via {competition} (season {season})",
        "content": "{team} finished #{position} in the {competition} and qualified for the next stage.",
    },
    "offer_incoming": {
        "subject": "Contract offer from {team}",
        "content": "{team} would like to sign you for {years} year(s) at ${wages} per week. "
                   "The offer is valid until {expires}.",
    },
    "offer_extension": {
        "subject": "Contract extension from {team}",
        "content": "We are happy with your performances and would like to extend your contract by "
                   "{years} year(s) at ${wages} per week. The offer is valid until {expires}.",
    },
    "offer_blocked": {
        "subject": "Transfer interest from {team}",
        "content": "{team} asked about signing you, but we are not willing to let you go.",
    },
    "offer_expiring": {
        "subject": "Offer from {team} expires tomorrow",
        "content": "You have one more day to answer the offer from {team}.",
    },
    "offer_expired": {
        "subject": "Offer from {team} expired",
        "content": "You did not answer in time, so {team} withdrew their offer.",
    },
    "offer_accepted": {
        "subject": "Welcome to {team}",
        "content": "It's official: you signed with {team} until {contract_end}.",
    },
    "offer_extended": {
        "subject": "Contract extended with {team}",
        "content": "Your contract with {team} now runs until {contract_end}.",
    },
    "offer_rejected": {
        "subject": "Offer from {team} declined",
        "content": "You turned down the offer from {team}.",
    },
    "contract_expired": {
        "subject": "Contract with {team} expired",
        "content": "Your contract with {team} has ended. You are now a free agent.",
    },
    "player_benched": {
        "subject": "Moved to the bench at {team}",
        "content": "Your recent numbers have not been good enough. You are on the bench and transfer listed.",
    },
    "player_kicked": {
        "subject": "Released by {team}",
        "content": "{team} has terminated your contract. You are now a free agent.",
    },
    "sponsor_terminated": {
        "subject": "{sponsor} ended the sponsorship",
        "content": "{sponsor} terminated the deal after the team finished #{position}.",
    },
    "sponsor_bonus": {
        "subject": "{sponsor} placement bonus",
        "content": "Finishing #{position} earned a ${amount} bonus from {sponsor}.",
    },
    "sponsor_expired": {
        "subject": "{sponsor} contract expired",
        "content": "The sponsorship with {sponsor} has run its course.",
    },
    "sponsor_accepted": {
        "subject": "{sponsor} sponsorship signed",
        "content": "{sponsor} will pay ${amount} every {frequency} week(s) until {end}.",
    },
    "sponsor_rejected": {
        "subject": "{sponsor} declined",
        "content": "{sponsor} is not interested in sponsoring the team right now.",
    },
    "sponsor_invite": {
        "subject": "{sponsor} invitational",
        "content": "{sponsor} has invited the team to the {competition} starting {start}.",
    },
}


def render(name: str, **context) -> dict:
    """Return {"subject", "content"} for a template, filled with `context`."""
    template = MAIL_TEMPLATES[name]
    return {
        "subject": template["subject"].format(**context),
        "content": template["content"].format(**context),
    }
