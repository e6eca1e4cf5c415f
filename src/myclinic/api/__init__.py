"""HTTP facade over MyclinicClient."""
