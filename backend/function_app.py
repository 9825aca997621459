import azure.functions as func
from api import bookings, geocoding, listings

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

geocoding.register_routes(app)
listings.register_routes(app)
bookings.register_routes(app)
