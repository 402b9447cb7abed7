REDIS_BAN_KEY = "ban:{nickname}" # nickname - ban record hash

# **`ban:{nickname}` hash fields**
# - `until` = ISO timestamp, or `forever` for a permanent ban
# - `reason` = free text shown to the banned user
# - `banned_at` = ISO timestamp
