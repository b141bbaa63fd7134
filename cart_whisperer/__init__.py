"""Cart Whisperer: abandoned cart recovery emails."""
