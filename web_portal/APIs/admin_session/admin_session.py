from ...views import *


def session_payload(session):
    return {
        'admin': AdminAccountSerializer(session.admin).data,
        'is_super_admin': session.is_super_admin(),
        'permissions': session.permission_matrix(),
        'accessible_modules': session.accessible_modules(),
        'login_at': session.login_at,
    }


class AdminSignInView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        try:
            serializer = AdminLoginSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({
                    'status': 'fail',
                    'message': 'Username and password are required'
                }, status=status.HTTP_400_BAD_REQUEST)

            username = serializer.validated_data['username']
            password = serializer.validated_data['password']

            admin = AdminAccount.objects.filter(username=username, is_active=True).first()
            if not admin or not admin.check_password(password):
                response_data = {'status': 'fail', 'message': 'Invalid username or password'}
                save_api_log(request, "AdminLogin", request.data, response_data, service_type="Admin Login")
                return Response(response_data, status=status.HTTP_401_UNAUTHORIZED)

            with transaction.atomic():
                snapshot = [row.as_matrix_row() for row in admin.permissions.all()]
                access_token, jti = create_admin_session_token(admin)
                session = AdminLoginSession.objects.create(
                    admin=admin,
                    token_jti=jti,
                    permission_snapshot=snapshot,
                    ip_address=client_ip(request),
                    user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
                    device_info=extract_device_information(request),
                )

            record_admin_activity(request, 'login', f'{admin.username} signed in', payload={'username': username}, user=admin)
            save_api_log(request, "AdminLogin", request.data, {'status': 'success', 'admin_id': admin.id}, service_type="Admin Login")

            return Response({
                'status': 'success',
                'message': 'Login successful',
                'data': {
                    'access_token': access_token,
                    'token_type': 'Bearer',
                    **session_payload(session),
                }
            }, status=status.HTTP_200_OK)

        except Exception as e:
            save_api_log(request, "AdminLogin", request.data, {'status': 'error', 'message': str(e)}, service_type="Admin Login")
            return Response({
                'status': 'error',
                'message': 'Internal server error'
            }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class AdminSessionView(APIView):
    """Rehydrates the signed-in admin and the permissions captured at login."""
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            'status': 'success',
            'message': 'Session is active',
            'data': session_payload(request.auth)
        }, status=status.HTTP_200_OK)


class AdminSignOutView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request):
        try:
            request.auth.end()
            record_admin_activity(request, 'logout', f'{request.user.username} signed out', payload={})
            return Response({
                'status': 'success',
                'message': 'Logged out successfully'
            }, status=status.HTTP_200_OK)
        except Exception as e:
            save_api_log(request, "AdminLogout", {}, {'status': 'error', 'message': str(e)}, service_type="Admin Logout")
            return Response({
                'status': 'error',
                'message': str(e)
            }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
