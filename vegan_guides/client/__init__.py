"""Client-side discovery coordinator, API client and chat state."""
