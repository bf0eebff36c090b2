"""Graph construction, search highlighting, layout and tree views."""
