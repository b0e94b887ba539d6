"""
Application constants for the BoxScan inventory system.
"""

# Durable storage key holding the serialized container collection
CONTAINERS_KEY = 'inventoryContainers'
CORRUPT_BACKUP_KEY = CONTAINERS_KEY + '.corrupt'

# Machine-generated container ids: BOX-<last 6 digits of epoch millis>
CONTAINER_ID_PREFIX = 'BOX-'
CONTAINER_ID_DIGITS = 6

# Upload limits
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
IMAGE_MIME_PREFIX = 'image/'

EXPORT_FILENAME_TEMPLATE = 'inventory-backup-{date}.json'

# Onboarding content written on first start (no persisted collection yet)
SAMPLE_CONTAINERS = [
    ('BOX-001', ['Arduino Uno', 'Breadboard', 'Jumper Wires']),
    ('BOX-002', ['Resistors 220Ω', 'LEDs', 'Capacitors 100µF']),
]
