"""Classification and relay pipeline."""
