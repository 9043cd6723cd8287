"""
Game constants for Onlypoly.
All monetary values are whole dollars.
"""

# Board spaces
BOARD_SIZE = 40
START_POSITION = 0
STARTING_MONEY = 1500
SALARY_AMOUNT = 200  # Passing the start tile

# Jail
JAIL_POSITION = 10
JAIL_TURNS = 2
JAIL_FINE = 100

# Houses and Hotels
MAX_HOUSES_PER_PROPERTY = 4

# A single rent hit never exceeds this share of the payer's total assets
RENT_CAP_RATIO = 0.85

# Lobby
MAX_PLAYERS = 8
MAX_NAME_LENGTH = 16
DEFAULT_COLORS = [
    "#00d2ff",
    "#ff4b81",
    "#f1c40f",
    "#2ecc71",
    "#9b59b6",
    "#e67e22",
    "#3498db",
    "#e74c3c",
]

# Auctions
AUCTION_BID_STEPS = (10, 50, 100)

# Country groups with their tile counts
PROPERTY_GROUPS = {
    "EGYPT": 2,
    "GREECE": 3,
    "ITALY": 3,
    "SPAIN": 3,
    "FRANCE": 3,
    "GERMANY": 3,
    "UNITED_KINGDOM": 3,
    "USA": 2,
}

# Tile data structure
# Format: (id, name, type, price, group, rents, house_price, hotel_price)
# Property rents are: [base, 1house, 2houses, 3houses, 4houses, hotel]
# Airport rents are indexed by the number of airports the owner holds
# Tax tiles carry the amount due in the price column
TILES = [
    # Special spaces
    (0, "Start", "START", None, None, None, None, None),
    (10, "Jail", "JAIL", None, None, None, None, None),
    (20, "Free Parking", "FREE_PARKING", None, None, None, None, None),
    (30, "Go To Jail", "GO_TO_JAIL", None, None, None, None, None),

    # Egypt
    (1, "Cairo", "PROPERTY", 60, "EGYPT", [2, 10, 30, 90, 160, 250], 50, 50),
    (3, "Alexandria", "PROPERTY", 60, "EGYPT", [4, 20, 60, 180, 320, 450], 50, 50),

    # Greece
    (6, "Athens", "PROPERTY", 100, "GREECE", [6, 30, 90, 270, 400, 550], 50, 50),
    (7, "Thessaloniki", "PROPERTY", 100, "GREECE", [6, 30, 90, 270, 400, 550], 50, 50),
    (9, "Santorini", "PROPERTY", 120, "GREECE", [8, 40, 100, 300, 450, 600], 50, 50),

    # Italy
    (11, "Rome", "PROPERTY", 140, "ITALY", [10, 50, 150, 450, 625, 750], 100, 100),
    (13, "Milan", "PROPERTY", 140, "ITALY", [10, 50, 150, 450, 625, 750], 100, 100),
    (14, "Venice", "PROPERTY", 160, "ITALY", [12, 60, 180, 500, 700, 900], 100, 100),

    # Spain
    (16, "Madrid", "PROPERTY", 180, "SPAIN", [14, 70, 200, 550, 750, 950], 100, 100),
    (18, "Barcelona", "PROPERTY", 180, "SPAIN", [14, 70, 200, 550, 750, 950], 100, 100),
    (19, "Seville", "PROPERTY", 200, "SPAIN", [16, 80, 220, 600, 800, 1000], 100, 100),

    # France
    (21, "Paris", "PROPERTY", 220, "FRANCE", [18, 90, 250, 700, 875, 1050], 150, 150),
    (23, "Lyon", "PROPERTY", 220, "FRANCE", [18, 90, 250, 700, 875, 1050], 150, 150),
    (24, "Marseille", "PROPERTY", 240, "FRANCE", [20, 100, 300, 750, 925, 1100], 150, 150),

    # Germany
    (26, "Berlin", "PROPERTY", 260, "GERMANY", [22, 110, 330, 800, 975, 1150], 150, 150),
    (27, "Munich", "PROPERTY", 260, "GERMANY", [22, 110, 330, 800, 975, 1150], 150, 150),
    (29, "Hamburg", "PROPERTY", 280, "GERMANY", [24, 120, 360, 850, 1025, 1200], 150, 150),

    # United Kingdom
    (31, "London", "PROPERTY", 300, "UNITED_KINGDOM", [26, 130, 390, 900, 1100, 1275], 200, 200),
    (32, "Manchester", "PROPERTY", 300, "UNITED_KINGDOM", [26, 130, 390, 900, 1100, 1275], 200, 200),
    (34, "Edinburgh", "PROPERTY", 320, "UNITED_KINGDOM", [28, 150, 450, 1000, 1200, 1400], 200, 200),

    # USA
    (37, "New York", "PROPERTY", 350, "USA", [35, 175, 500, 1100, 1300, 1500], 200, 200),
    (39, "San Francisco", "PROPERTY", 400, "USA", [50, 200, 600, 1400, 1700, 2000], 200, 200),

    # Airports
    (5, "Heathrow Airport", "AIRPORT", 200, None, [25, 50, 100, 200], None, None),
    (15, "Charles de Gaulle Airport", "AIRPORT", 200, None, [25, 50, 100, 200], None, None),
    (25, "Frankfurt Airport", "AIRPORT", 200, None, [25, 50, 100, 200], None, None),
    (35, "JFK Airport", "AIRPORT", 200, None, [25, 50, 100, 200], None, None),

    # Utilities
    (12, "Electric Company", "UTILITY", 150, None, None, None, None),
    (28, "Water Works", "UTILITY", 150, None, None, None, None),

    # Tax spaces
    (4, "Income Tax", "TAX", 200, None, None, None, None),
    (38, "Luxury Tax", "TAX", 100, None, None, None, None),

    # Card spaces
    (2, "Community Chest", "COMMUNITY_CHEST", None, None, None, None, None),
    (17, "Community Chest", "COMMUNITY_CHEST", None, None, None, None, None),
    (33, "Community Chest", "COMMUNITY_CHEST", None, None, None, None, None),
    (8, "Chance", "CHANCE", None, None, None, None, None),
    (22, "Chance", "CHANCE", None, None, None, None, None),
    (36, "Chance", "CHANCE", None, None, None, None, None),
]

# Utility rent multipliers
UTILITY_MULTIPLIERS = {
    1: 4,   # One utility owned: 4x dice
    2: 10   # Both utilities owned: 10x dice
}

# Chance cards
# Format: (id, kind, amount, delta, text)
CHANCE_CARDS = [
    ("gain50", "MONEY", 50, 0, "Side hustle paid off. Collect $50."),
    ("gain150", "MONEY", 150, 0, "Angel investor backs you. Collect $150."),
    ("lose50", "MONEY", -50, 0, "Unexpected bill. Pay $50."),
    ("lose150", "MONEY", -150, 0, "Luxury vacation ran long. Pay $150."),
    ("fwd3", "MOVE", 0, 3, "Fast-track success. Move forward 3 tiles."),
    ("back3", "MOVE", 0, -3, "Market correction. Move back 3 tiles."),
    ("gotoJail", "GO_TO_JAIL", 0, 0, "Audit hits. Go directly to Jail."),
]
