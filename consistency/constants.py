DAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

MINUTES_PER_DAY = 24 * 60

# (minimum ratio, bucket), checked top-down
INTENSITY_THRESHOLDS = [
    (1.0, 4),
    (0.8, 3),
    (0.6, 2),
    (0.3, 1),
]

# Local hour after which a streak with no activity today is flagged
STREAK_RISK_HOURS = {
    "dsa": 20,
    "gym": 20,
    "reflection": 22,
}

PRIORITIES = ["high", "medium", "low"]
TODO_CATEGORIES = ["study", "gym", "personal", "college"]
BLOCK_TYPES = ["routine", "gym", "study", "college", "break"]
DIFFICULTIES = ["easy", "medium", "hard"]

DEFAULT_DAILY_BLOCKS = [
    {"time_slot": "06:00-06:15", "task": "Wake + Water + Prayer", "emoji": "🌅", "block_type": "routine"},
    {"time_slot": "06:15-07:15", "task": "Gym", "emoji": "🏋️", "block_type": "gym"},
    {"time_slot": "07:15-07:45", "task": "Breakfast + Protein", "emoji": "🥣", "block_type": "routine"},
    {"time_slot": "08:30-16:30", "task": "College", "emoji": "🎓", "block_type": "college"},
    {"time_slot": "17:00-17:30", "task": "Nap/Reset", "emoji": "😴", "block_type": "break"},
    {"time_slot": "17:30-18:15", "task": "TUF DSA Concept", "emoji": "📚", "block_type": "study"},
    {"time_slot": "18:15-19:15", "task": "Striver Sheet (2-3 Qs)", "emoji": "💻", "block_type": "study"},
    {"time_slot": "19:15-19:45", "task": "Dinner", "emoji": "🍽️", "block_type": "routine"},
    {"time_slot": "20:00-21:00", "task": "DSA Revision OR Dev", "emoji": "🔄", "block_type": "study"},
    {"time_slot": "21:00-21:45", "task": "Wind Down", "emoji": "📱", "block_type": "break"},
    {"time_slot": "22:15-22:30", "task": "Prayer + Prep Next Day", "emoji": "🙏", "block_type": "routine"},
]

# Start-time-only routines; an item lasts until the next one starts
WEEKDAY_ROUTINE = [
    ("6:00", "Wake + Water + Prayer", "routine"),
    ("6:15", "Gym Time - Push/Pull/Legs", "gym"),
    ("7:15", "Breakfast + Protein", "routine"),
    ("8:30", "College", "college"),
    ("16:30", "College", "college"),
    ("17:00", "Nap/Reset", "break"),
    ("17:30", "TUF DSA Concept Video", "study"),
    ("18:15", "Striver Sheet (2-3 Questions)", "study"),
    ("19:15", "Dinner", "routine"),
    ("20:00", "DSA Revision OR Dev (Light)", "study"),
    ("21:00", "Wind Down: Video or Reflect", "break"),
    ("22:15", "Prayer + Prep Next Day", "routine"),
    ("22:30", "Sleep", "routine"),
]
SATURDAY_ROUTINE = [
    ("9:00", "DSA Mock Contest", "study"),
    ("10:00", "Project Build", "study"),
    ("14:00", "Push + Polish + Host", "study"),
    ("16:00", "Rest/Social", "break"),
    ("18:00", "DSA Revise", "study"),
    ("20:00", "System Design Video", "study"),
]
SUNDAY_ROUTINE = [
    ("9:00", "Striver Sheet Weekly Review", "study"),
    ("11:00", "Resume/GitHub/LinkedIn Updates", "study"),
    ("14:00", "Read/Reflect", "break"),
    ("17:00", "Weekly Plan Reset", "routine"),
]
