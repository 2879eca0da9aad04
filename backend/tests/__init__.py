# Force SQLModel table registration at test discovery time
from gallera.models.tournament import Tournament  # noqa: F401
