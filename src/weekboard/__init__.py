"""weekboard - Weekly kanban board with ordering, forwarding, archiving and alerts."""
