RISK_LEVEL_VERY_LOW = "Very Low"
RISK_LEVEL_LOW = "Low"
RISK_LEVEL_MEDIUM = "Medium"
RISK_LEVEL_HIGH = "High"
RISK_LEVEL_VERY_HIGH = "Very High"
RISK_LEVEL_CRITICAL = "Critical"
RISK_LEVEL_CHOICES = [
    (RISK_LEVEL_VERY_LOW, "Very Low"),
    (RISK_LEVEL_LOW, "Low"),
    (RISK_LEVEL_MEDIUM, "Medium"),
    (RISK_LEVEL_HIGH, "High"),
    (RISK_LEVEL_VERY_HIGH, "Very High"),
    (RISK_LEVEL_CRITICAL, "Critical"),
]

PRIORITY_LOW = "Low"
PRIORITY_MEDIUM = "Medium"
PRIORITY_HIGH = "High"
PRIORITY_CRITICAL = "Critical"
PRIORITY_CHOICES = [
    (PRIORITY_LOW, "Low"),
    (PRIORITY_MEDIUM, "Medium"),
    (PRIORITY_HIGH, "High"),
    (PRIORITY_CRITICAL, "Critical"),
]

# Gap ranking; anything else ranks 0.
PRIORITY_RANK = {
    PRIORITY_CRITICAL: 4,
    PRIORITY_HIGH: 3,
    PRIORITY_MEDIUM: 2,
    PRIORITY_LOW: 1,
}
