from models import users, log, settings, rate_limit, bike, repair, availability, announcement, inventory, task  # noqa: F401
