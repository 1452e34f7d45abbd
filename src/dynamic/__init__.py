"""Dynamic Notion databases: schema registry, entry access and batch execution."""
