from .change_request import ChangeRequest, ChangePriority, ChangeStatus, ChangeType
