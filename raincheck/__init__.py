"""Rain Alert: weather dashboard with saved locations, alerts and Gemini insights."""
