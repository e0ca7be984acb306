# backend/app/services/incidents/errors.py


class IncidentError(Exception):
    pass


class DuplicateIncidentError(IncidentError):
    def __init__(self, image_hash: str):
        super().__init__("Duplicate incident - this image was already submitted")
        self.image_hash = image_hash


class IncidentNotFoundError(IncidentError):
    def __init__(self, incident_id: int):
        super().__init__("Incident not found")
        self.incident_id = incident_id
