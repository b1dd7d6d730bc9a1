"""LearnPlay: gamified learning backend."""
