from config import get_settings
from web import create_app

app = create_app("admin", title="Admin Service")


@app.get("/api/about")
def about():
    return [
        {"first_name": first_name, "last_name": last_name}
        for first_name, last_name in get_settings().team_members
    ]
