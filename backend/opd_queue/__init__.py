"""OPD Token Allocation - outpatient consultation queue engine and API."""
