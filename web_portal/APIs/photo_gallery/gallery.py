from ...views import *

ALLOWED_IMAGE_FORMATS = {'JPEG': 'jpg', 'PNG': 'png', 'WEBP': 'webp', 'GIF': 'gif'}


def list_gallery(request):
    folder = settings.PHOTO_GALLERY_FOLDER
    try:
        _, files = default_storage.listdir(folder)
    except FileNotFoundError:
        return []

    photos = []
    for name in files:
        path = f"{folder}/{name}"
        photos.append({
            'name': name,
            'url': request.build_absolute_uri(default_storage.url(path)),
            'size': default_storage.size(path),
            'uploaded_at': default_storage.get_modified_time(path),
        })
    photos.sort(key=lambda p: p['uploaded_at'], reverse=True)
    return photos


def read_image(upload):
    """Returns the file extension for a valid image upload, None otherwise."""
    if upload.size > settings.PHOTO_MAX_UPLOAD_BYTES:
        return None
    try:
        with Image.open(upload) as img:
            img_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    finally:
        upload.seek(0)
    return ALLOWED_IMAGE_FORMATS.get(img_format)


class PhotoGalleryView(APIView):
    authentication_classes = [AdminJWTAuthentication]
    permission_classes = [HasModulePermission]
    permission_module = 'photos'

    def get(self, request):
        photos = list_gallery(request)
        error, page = paginate_rows(request, photos)
        if error:
            return error
        return Response({
            'status': 'success',
            'message': 'Photos fetched successfully' if photos else 'No photos uploaded yet',
            'data': page
        }, status=status.HTTP_200_OK)

    def post(self, request):
        uploads = request.FILES.getlist('photos') or request.FILES.getlist('photo')
        if not uploads:
            return Response({'status': 'fail', 'message': 'Select at least one photo to upload'}, status=status.HTTP_400_BAD_REQUEST)

        rejected = [u.name for u in uploads if read_image(u) is None]
        if rejected:
            return Response({
                'status': 'fail',
                'message': 'Only JPG, PNG, WEBP or GIF images up to the size limit are allowed',
                'rejected': rejected
            }, status=status.HTTP_400_BAD_REQUEST)

        saved = []
        try:
            for upload in uploads:
                extension = read_image(upload)
                stamp = timezone.now().strftime('%Y%m%d%H%M%S')
                name = f"{settings.PHOTO_GALLERY_FOLDER}/{stamp}-{uuid.uuid4().hex[:10]}.{extension}"
                stored = default_storage.save(name, ContentFile(upload.read()))
                saved.append({
                    'name': os.path.basename(stored),
                    'url': request.build_absolute_uri(default_storage.url(stored)),
                })
        except Exception as e:
            save_api_log(request, "PhotoGallery", request.data, {'status': 'error', 'message': str(e)}, service_type="Photo Upload")
            return Response({'status': 'error', 'message': str(e), 'data': saved}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        record_admin_activity(request, 'upload_photos', f'{len(saved)} photo(s) uploaded', payload={'files': [s['name'] for s in saved]})
        return Response({
            'status': 'success',
            'message': f'{len(saved)} photo(s) uploaded successfully',
            'data': saved
        }, status=status.HTTP_201_CREATED)

    def delete(self, request):
        name = os.path.basename(str(request.data.get('name') or request.query_params.get('name') or ''))
        if not name:
            return Response({'status': 'fail', 'message': 'Photo name is required'}, status=status.HTTP_400_BAD_REQUEST)

        path = f"{settings.PHOTO_GALLERY_FOLDER}/{name}"
        if not default_storage.exists(path):
            return Response({'status': 'fail', 'message': 'Photo not found'}, status=status.HTTP_404_NOT_FOUND)

        default_storage.delete(path)
        record_admin_activity(request, 'delete_photo', f'Photo {name} deleted', payload={'name': name})
        return Response({'status': 'success', 'message': 'Photo deleted successfully'}, status=status.HTTP_200_OK)


class PublicPhotoListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({
            'status': 'success',
            'message': 'Photos fetched successfully',
            'data': list_gallery(request)
        }, status=status.HTTP_200_OK)
