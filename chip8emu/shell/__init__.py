"""Host-side services: ROM loading, machine construction, rendering."""
