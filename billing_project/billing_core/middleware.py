from django.utils.deprecation import MiddlewareMixin

from .models import Company


class CurrentCompanyMiddleware(MiddlewareMixin):
    # Attach request.company: the company the logged-in user is working in
    def process_request(self, request):
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            # Unauthenticated users
            request.company = None
            return

        # Default company fallback: the user's default_company
        request.company = getattr(user, "default_company", None)

        # A company switched to during the session wins over the default
        company_id = request.session.get("active_company_id")
        if company_id:
            # user must be a member of that company; a tampered session
            # id resolves to no company at all
            request.company = Company.objects.filter(
                id=company_id, memberships__user=user
            ).first()
