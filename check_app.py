import sys
import os

# Add the api directory to sys.path
sys.path.append(os.path.join(os.getcwd(), "services/api"))

EXPECTED_ROUTES = {"/api/dishes", "/api/dishes/{dish_id}", "/api/notes", "/api/users/me", "/api/ready"}

try:
    from mealweek.main import app
    print("App imported successfully")

    paths = {route.path for route in app.routes if hasattr(route, "path")}
    missing = EXPECTED_ROUTES - paths
    for path in sorted(EXPECTED_ROUTES & paths):
        print(f"Found route: {path}")

    if missing:
        print(f"ERROR: Routes NOT FOUND: {', '.join(sorted(missing))}")
        sys.exit(1)

except Exception as e:
    print(f"App import failed: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
