"""photofeed: curated construction-photo gallery feed built from CompanyCam."""

__version__ = "0.1.0"
