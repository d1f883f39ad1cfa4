import time
from rest_framework.renderers import JSONRenderer

SUCCESS_MESSAGES = {
    "POST": "Resource created successfully.",
    "PUT": "Resource updated successfully.",
    "PATCH": "Resource updated successfully.",
    "DELETE": "Resource deleted successfully.",
}


class CustomJSONRenderer(JSONRenderer):
    """
    Wraps successful responses into the envelope every endpoint shares:
    {success, code, message, timestamp, data}. Error responses come out of
    the exception handler already enveloped and are rendered as they are.
    """

    def _message_for(self, request, status_code, data):
        if isinstance(data, dict) and 'token' in data and 'refresh_token' in data:
            return "Successfully Logged in."
        if status_code == 201:
            return SUCCESS_MESSAGES["POST"]
        method = getattr(request, 'method', 'GET')
        if method == "POST":
            return "Operation successful."
        return SUCCESS_MESSAGES.get(method, "Operation successful.")

    def render(self, data, accepted_media_type=None, renderer_context=None):
        renderer_context = renderer_context or {}
        response = renderer_context.get('response')
        if response is None or response.status_code == 204:
            return super().render(data, accepted_media_type, renderer_context)

        already_wrapped = isinstance(data, dict) and 'success' in data
        if already_wrapped or not (200 <= response.status_code < 300):
            return super().render(data, accepted_media_type, renderer_context)

        envelope = {
            "success": True,
            "code": response.status_code,
            "message": self._message_for(renderer_context.get('request'), response.status_code, data),
            "timestamp": int(time.time()),
            "data": data,
        }
        return super().render(envelope, accepted_media_type, renderer_context)
