"""FlightCheck: training checklist web app backed by Supabase."""
