# interfaces/seed_catalog.py
"""
Seed Catalog
Sample listings for the in-memory repository (development and tests).
Records use the wire format: flat camelCase with listingType.
"""

from typing import Any, Dict, List

from ..schemas import Category


SEED_FLIGHTS: List[Dict[str, Any]] = [
    {
        "id": "FL001", "listingType": "flight",
        "airline": "Air India", "flightNumber": "AI-101",
        "fromCity": "Mumbai", "toCity": "Delhi",
        "departureTime": "2025-03-15T06:00:00Z", "arrivalTime": "2025-03-15T08:15:00Z",
        "duration": "2h 15m", "price": 4500, "availableSeats": 42,
        "classType": "economy", "stops": 0, "baggageAllowance": "15 kg",
        "mealIncluded": True, "rating": 4.2,
    },
    {
        "id": "FL002", "listingType": "flight",
        "airline": "IndiGo", "flightNumber": "6E-2041-STOP",
        "fromCity": "Mumbai", "toCity": "Bangalore",
        "departureTime": "2025-03-15T09:30:00Z", "arrivalTime": "2025-03-15T13:45:00Z",
        "duration": "4h 15m", "price": 3800, "availableSeats": 8,
        "classType": "economy", "stops": 1, "baggageAllowance": "15 kg",
        "mealIncluded": False, "rating": 3.9,
    },
    {
        "id": "FL003", "listingType": "flight",
        "airline": "United Airlines", "flightNumber": "UA-123",
        "fromCity": "New York (JFK)", "toCity": "Los Angeles (LAX)",
        "departureTime": "2025-03-16T08:00:00Z", "arrivalTime": "2025-03-16T14:00:00Z",
        "duration": "6h 0m", "price": 45000, "availableSeats": 120,
        "classType": "economy", "stops": 0, "baggageAllowance": "15 kg",
        "mealIncluded": True, "rating": 4.4,
    },
    {
        "id": "FL004", "listingType": "flight",
        "airline": "British Airways", "flightNumber": "BA-234",
        "fromCity": "London (LHR)", "toCity": "Paris (CDG)",
        "departureTime": "2025-03-16T05:00:00Z", "arrivalTime": "2025-03-16T06:30:00Z",
        "duration": "1h 30m", "price": 25000, "availableSeats": 85,
        "classType": "economy", "stops": 0, "baggageAllowance": "15 kg",
        "mealIncluded": False, "rating": 4.1,
    },
    {
        "id": "FL005", "listingType": "flight",
        "airline": "Japan Airlines", "flightNumber": "JL-567",
        "fromCity": "Tokyo (NRT)", "toCity": "Seoul (ICN)",
        "departureTime": "2025-03-17T10:00:00Z", "arrivalTime": "2025-03-17T12:30:00Z",
        "duration": "2h 30m", "price": 95000, "availableSeats": 45,
        "classType": "business", "stops": 0, "baggageAllowance": "30 kg",
        "mealIncluded": True, "rating": 4.8,
    },
]

SEED_HOTELS: List[Dict[str, Any]] = [
    {
        "id": "HT001", "listingType": "hotel",
        "name": "Taj Mahal Palace", "location": "Colaba", "city": "Mumbai",
        "rating": 4.8, "pricePerNight": 15000,
        "amenities": ["WiFi", "Pool", "Spa", "Gym", "Restaurant", "Sea View"],
        "roomType": "Deluxe", "availableRooms": 12, "checkIn": "14:00", "checkOut": "11:00",
    },
    {
        "id": "HT002", "listingType": "hotel",
        "name": "Lemon Tree Hotel", "location": "Andheri East", "city": "Mumbai",
        "rating": 4.0, "pricePerNight": 4200,
        "amenities": ["WiFi", "Restaurant", "Gym"],
        "roomType": "Standard", "availableRooms": 30, "checkIn": "12:00", "checkOut": "11:00",
    },
    {
        "id": "HT003", "listingType": "hotel",
        "name": "The Leela Palace", "location": "Chanakyapuri", "city": "Delhi",
        "rating": 4.7, "pricePerNight": 22000,
        "amenities": ["WiFi", "Pool", "Spa"],
        "roomType": "Suite", "availableRooms": 4, "checkIn": "15:00", "checkOut": "12:00",
    },
]

SEED_BUSES: List[Dict[str, Any]] = [
    {
        "id": "BS001", "listingType": "bus",
        "operator": "VRL Travels", "busNumber": "VRL-7788",
        "fromCity": "Mumbai", "toCity": "Goa",
        "departureTime": "2025-03-15T20:00:00Z", "arrivalTime": "2025-03-16T08:00:00Z",
        "duration": "12h 0m", "price": 1200, "availableSeats": 18,
        "busType": "sleeper", "amenities": ["AC", "Blanket", "Charging Points"], "rating": 4.3,
    },
    {
        "id": "BS002", "listingType": "bus",
        "operator": "Megabus", "busNumber": "MB-2341",
        "fromCity": "Los Angeles", "toCity": "San Francisco",
        "departureTime": "2025-03-15T07:00:00Z", "arrivalTime": "2025-03-15T14:00:00Z",
        "duration": "7h 0m", "price": 6500, "availableSeats": 38,
        "busType": "semi-sleeper", "amenities": ["AC", "Reclining Seats", "WiFi"], "rating": 4.0,
    },
    {
        "id": "BS003", "listingType": "bus",
        "operator": "Greyhound", "busNumber": "GH-5678",
        "fromCity": "New York", "toCity": "Boston",
        "departureTime": "2025-03-15T06:00:00Z", "arrivalTime": "2025-03-15T10:00:00Z",
        "duration": "4h 0m", "price": 3500, "availableSeats": 42,
        "busType": "ac", "amenities": ["AC", "Charging Points", "Reading Lights"], "rating": 3.8,
    },
]

SEED_ACTIVITIES: List[Dict[str, Any]] = [
    {
        "id": "AC001", "listingType": "activity",
        "title": "Mumbai Heritage Walk", "location": "Gateway of India", "city": "Mumbai",
        "description": "Guided walk through Fort and Colaba", "category": "Sightseeing",
        "duration": "4h", "price": 1000, "rating": 4.7,
        "maxParticipants": 30, "availableSpots": 20, "includes": ["Guide", "Transport"],
    },
    {
        "id": "AC002", "listingType": "activity",
        "title": "Scuba Diving at Grande Island", "location": "Grande Island", "city": "Goa",
        "description": "Beginner dive with certified instructors", "category": "Adventure",
        "duration": "2h", "price": 3500, "rating": 4.5,
        "maxParticipants": 10, "availableSpots": 6, "includes": ["Equipment", "Instructor"],
    },
]

SEED_CATALOG: Dict[Category, List[Dict[str, Any]]] = {
    Category.FLIGHTS: SEED_FLIGHTS,
    Category.HOTELS: SEED_HOTELS,
    Category.BUSES: SEED_BUSES,
    Category.ACTIVITIES: SEED_ACTIVITIES,
}
