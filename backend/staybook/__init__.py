"""StayBook: reservation and split-payment lifecycle engine."""
