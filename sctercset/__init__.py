"""sctercset - SCT ERC / SCSI timeout setup for RAID member drives."""

__version__ = "0.2.0"
