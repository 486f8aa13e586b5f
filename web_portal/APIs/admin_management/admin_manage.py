from ...views import *


def stored_permission_matrix(admin):
    rows = {row.module: row.as_matrix_row() for row in admin.permissions.all()}
    matrix = []
    for key, label in APP_MODULES:
        row = rows.get(key) or {f'can_{action}': False for action in PERMISSION_ACTIONS}
        matrix.append({
            'module': key,
            'label': label,
            **{f'can_{action}': bool(row.get(f'can_{action}')) for action in PERMISSION_ACTIONS},
        })
    return matrix


def save_permission_rows(admin, rows):
    for row in rows:
        AdminPermission.objects.update_or_create(
            admin=admin,
            module=row['module'],
            defaults={f'can_{action}': row.get(f'can_{action}', False) for action in PERMISSION_ACTIONS},
        )


class AdminManageView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [IsSuperAdmin]

    def get(self, request):
        try:
            search = request.query_params.get('search', '').strip()
            admins = AdminAccount.objects.select_related('created_by').order_by('-created_at')
            if search:
                admins = admins.filter(username__icontains=search)

            rows = list(AdminAccountSerializer(admins, many=True).data)
            error, page = paginate_rows(request, rows)
            if error:
                return error

            return Response({
                'status': 'success',
                'message': 'Admins fetched successfully',
                'data': page
            }, status=status.HTTP_200_OK)
        except Exception as exc:
            return Response({'status': 'error', 'message': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def post(self, request):
        try:
            serializer = AdminCreateSerializer(data=request.data)
            if not serializer.is_valid():
                return Response({'status': 'fail', 'message': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

            permission_rows = PermissionRowSerializer(data=request.data.get('permissions') or [], many=True)
            if not permission_rows.is_valid():
                return Response({'status': 'fail', 'message': permission_rows.errors}, status=status.HTTP_400_BAD_REQUEST)

            data = serializer.validated_data
            with transaction.atomic():
                admin = AdminAccount(
                    username=data['username'],
                    role=data['role'],
                    is_active=data['is_active'],
                    created_by=request.user,
                )
                admin.set_password(data['password'])
                admin.save()
                save_permission_rows(admin, permission_rows.validated_data)

            record_admin_activity(request, 'create_admin', f'Admin {admin.username} created')
            return Response({
                'status': 'success',
                'message': 'Admin created successfully',
                'data': {**AdminAccountSerializer(admin).data, 'permissions': stored_permission_matrix(admin)}
            }, status=status.HTTP_201_CREATED)
        except Exception as exc:
            save_api_log(request, "AdminManage", request.data, {'status': 'error', 'message': str(exc)}, service_type="Admin Create")
            return Response({'status': 'error', 'message': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def put(self, request):
        try:
            admin_id = request.data.get('admin_id')
            if not is_positive_integer(admin_id):
                return Response({'status': 'fail', 'message': 'Valid admin_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            admin = AdminAccount.objects.filter(id=int(admin_id)).first()
            if not admin:
                return Response({'status': 'fail', 'message': 'Admin not found'}, status=status.HTTP_404_NOT_FOUND)

            username = (request.data.get('username') or '').strip()
            if username and username != admin.username:
                if AdminAccount.objects.filter(username__iexact=username).exclude(id=admin.id).exists():
                    return Response({'status': 'fail', 'message': 'Username already taken'}, status=status.HTTP_409_CONFLICT)
                admin.username = username

            role = request.data.get('role')
            if role:
                if role not in dict(AdminAccount.ROLE_CHOICES):
                    return Response({'status': 'fail', 'message': 'Invalid role'}, status=status.HTTP_400_BAD_REQUEST)
                admin.role = role

            if 'is_active' in request.data:
                if admin.id == request.user.id and str(request.data.get('is_active')).lower() in ('false', '0'):
                    return Response({'status': 'fail', 'message': 'You cannot deactivate your own account'}, status=status.HTTP_400_BAD_REQUEST)
                admin.is_active = str(request.data.get('is_active')).lower() in ('true', '1')

            password = request.data.get('password')
            if password:
                if len(password) < 6:
                    return Response({'status': 'fail', 'message': 'Password must be at least 6 characters'}, status=status.HTTP_400_BAD_REQUEST)
                admin.set_password(password)

            admin.save()
            record_admin_activity(request, 'update_admin', f'Admin {admin.username} updated')
            return Response({
                'status': 'success',
                'message': 'Admin updated successfully',
                'data': AdminAccountSerializer(admin).data
            }, status=status.HTTP_200_OK)
        except Exception as exc:
            return Response({'status': 'error', 'message': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def delete(self, request):
        try:
            admin_id = request.data.get('admin_id') or request.query_params.get('admin_id')
            if not is_positive_integer(admin_id):
                return Response({'status': 'fail', 'message': 'Valid admin_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            admin = AdminAccount.objects.filter(id=int(admin_id)).first()
            if not admin:
                return Response({'status': 'fail', 'message': 'Admin not found'}, status=status.HTTP_404_NOT_FOUND)
            if admin.id == request.user.id:
                return Response({'status': 'fail', 'message': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)

            username = admin.username
            admin.delete()
            record_admin_activity(request, 'delete_admin', f'Admin {username} deleted', payload={'admin_id': admin_id})
            return Response({'status': 'success', 'message': 'Admin deleted successfully'}, status=status.HTTP_200_OK)
        except Exception as exc:
            return Response({'status': 'error', 'message': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class AdminPermissionView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [IsSuperAdmin]

    def get(self, request):
        admin_id = request.query_params.get('admin_id')
        if not is_positive_integer(admin_id):
            return Response({'status': 'fail', 'message': 'Valid admin_id is required'}, status=status.HTTP_400_BAD_REQUEST)

        admin = AdminAccount.objects.filter(id=int(admin_id)).first()
        if not admin:
            return Response({'status': 'fail', 'message': 'Admin not found'}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'status': 'success',
            'message': 'Permissions fetched successfully',
            'data': {'admin': AdminAccountSerializer(admin).data, 'permissions': stored_permission_matrix(admin)}
        }, status=status.HTTP_200_OK)

    def put(self, request):
        try:
            admin_id = request.data.get('admin_id')
            if not is_positive_integer(admin_id):
                return Response({'status': 'fail', 'message': 'Valid admin_id is required'}, status=status.HTTP_400_BAD_REQUEST)

            admin = AdminAccount.objects.filter(id=int(admin_id)).first()
            if not admin:
                return Response({'status': 'fail', 'message': 'Admin not found'}, status=status.HTTP_404_NOT_FOUND)

            rows = PermissionRowSerializer(data=request.data.get('permissions') or [], many=True)
            if not rows.is_valid():
                return Response({'status': 'fail', 'message': rows.errors}, status=status.HTTP_400_BAD_REQUEST)

            with transaction.atomic():
                save_permission_rows(admin, rows.validated_data)

            record_admin_activity(request, 'update_permissions', f'Permissions updated for {admin.username}')
            return Response({
                'status': 'success',
                'message': 'Permissions saved. They apply from the admin\'s next login.',
                'data': {'admin': AdminAccountSerializer(admin).data, 'permissions': stored_permission_matrix(admin)}
            }, status=status.HTTP_200_OK)
        except Exception as exc:
            return Response({'status': 'error', 'message': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
