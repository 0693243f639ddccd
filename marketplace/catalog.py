"""Static marketplace catalog: bookable services, time slots and form options"""

BOOKABLE_SERVICES = [
    {"id": 1, "name": "Basic Wash & Vacuum", "price": 50, "duration": "1 hour",
     "description": "Exterior wash and interior vacuum"},
    {"id": 2, "name": "Interior Detail", "price": 120, "duration": "2 hours",
     "description": "Deep clean interior, seats, carpets, dashboard"},
    {"id": 3, "name": "Exterior Detail", "price": 150, "duration": "2.5 hours",
     "description": "Wash, clay bar, polish, wax"},
    {"id": 4, "name": "Full Detail", "price": 200, "duration": "4 hours",
     "description": "Complete interior and exterior detailing"},
    {"id": 5, "name": "Paint Correction", "price": 400, "duration": "6 hours",
     "description": "Multi-stage paint correction and polish"},
    {"id": 6, "name": "Ceramic Coating", "price": 800, "duration": "8 hours",
     "description": "Professional ceramic coating with warranty"},
]

TIME_SLOTS = [
    "8:00 AM", "9:00 AM", "10:00 AM", "11:00 AM",
    "12:00 PM", "1:00 PM", "2:00 PM", "3:00 PM", "4:00 PM",
]

PROVIDER_SERVICE_OPTIONS = [
    "Basic Wash & Vacuum",
    "Interior Detailing",
    "Exterior Detailing",
    "Full Detail",
    "Paint Correction",
    "Ceramic Coating",
    "Headlight Restoration",
    "Engine Bay Cleaning",
]

WAITLIST_SERVICE_OPTIONS = [
    "Basic Wash & Vacuum",
    "Interior Detailing",
    "Exterior Detailing",
    "Full Detail",
    "Paint Correction",
    "Ceramic Coating",
    "Not sure yet",
]

VEHICLE_TYPES = ("sedan", "suv", "truck", "van", "luxury", "sports", "rv", "motorcycle")

URGENCY_OPTIONS = ("asap", "week", "month", "flexible")

BUSINESS_TYPES = ("sole_proprietor", "llc", "corporation", "partnership")

YEARS_EXPERIENCE_OPTIONS = (
    "Less than 1 year", "1-2 years", "3-5 years", "5-10 years", "10+ years",
)


def get_service(service_id: int):
    for service in BOOKABLE_SERVICES:
        if service["id"] == service_id:
            return dict(service)
    return None
