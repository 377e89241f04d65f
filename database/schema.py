# ======================= USERS ==========================

user_schema = '''
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        email TEXT,
        name TEXT,
        created_at TIMESTAMP NOT NULL
    )
'''

# ======================= SETTINGS =======================

settings_schema = '''
    CREATE TABLE IF NOT EXISTS settings (
        user_id TEXT PRIMARY KEY,

        -- JSON object of scheduler settings, validated by SchedulerConfig
        data TEXT NOT NULL,
        updated_at TIMESTAMP NOT NULL,

        FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
    )
'''

# ======================= CARDS ==========================

card_schema = '''
    CREATE TABLE IF NOT EXISTS cards (
        card_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,

        -- Card content
        front TEXT NOT NULL,
        back TEXT NOT NULL,
        explanation TEXT,
        category TEXT,
        source TEXT DEFAULT 'manual',

        -- Metadata
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL,

        FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
    )
'''

# ===================== REVIEW ITEMS =====================

review_item_schema = '''
    CREATE TABLE IF NOT EXISTS review_items (
        review_item_id TEXT PRIMARY KEY,
        card_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        direction TEXT NOT NULL CHECK (direction IN ('forward', 'reverse')),

        -- SRS parameters (SM-2)
        state TEXT NOT NULL DEFAULT 'NEW',
        interval REAL NOT NULL DEFAULT 0,
        interval_unit TEXT NOT NULL DEFAULT 'minutes',
        ease_factor REAL NOT NULL,
        repetitions INTEGER NOT NULL DEFAULT 0,
        step_index INTEGER NOT NULL DEFAULT 0,
        lapsed_interval REAL,
        due_date TIMESTAMP NOT NULL,
        last_reviewed TIMESTAMP,

        -- Bumped on every write; updates are conditional on it
        version INTEGER NOT NULL DEFAULT 0,

        -- Denormalized card data
        front TEXT NOT NULL,
        back TEXT NOT NULL,
        category TEXT,

        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL,

        FOREIGN KEY (card_id) REFERENCES cards(card_id) ON DELETE CASCADE,
        UNIQUE (card_id, direction)
    )
'''

# ==================== REVIEW HISTORY ====================

review_history_schema = '''
    CREATE TABLE IF NOT EXISTS review_history (
        history_id INTEGER PRIMARY KEY AUTOINCREMENT,
        review_item_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        grade INTEGER NOT NULL,
        duration_ms INTEGER NOT NULL,
        state_before TEXT NOT NULL,
        state_after TEXT NOT NULL,
        interval_before REAL NOT NULL,
        interval_after REAL NOT NULL,
        ease_factor_before REAL NOT NULL,
        ease_factor_after REAL NOT NULL,
        reviewed_at TIMESTAMP NOT NULL,
        review_day TEXT NOT NULL,

        FOREIGN KEY (review_item_id) REFERENCES review_items(review_item_id) ON DELETE CASCADE
    )
'''

review_history_index = '''
    CREATE INDEX IF NOT EXISTS idx_history_user_day
    ON review_history (user_id, review_day)
'''
