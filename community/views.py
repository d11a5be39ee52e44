import csv
import functools
import logging

from django.conf import settings
from django.contrib import messages
from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from . import auth, events, members, notifications, payments, profile, reports, social
from .backend import BackendError, client_for, get_backend
from .forms import (
    AvatarForm,
    CommentForm,
    EventForm,
    FamilyMemberForm,
    LoginForm,
    MemberForm,
    MessageForm,
    PaymentForm,
    PostForm,
    ProfileForm,
    RegisterForm,
)
from .queries import RangedRows, parse_timestamp
from .translations import translate

# Logger
logger = logging.getLogger(__name__)


def _t(request, key):
    return translate(request.locale, key)


def _redirect(name, locale, **kwargs):
    return redirect(reverse(name, kwargs={"locale": locale, **kwargs}))


def _backend_failed(request, exc):
    logger.error("%s %s failed: %s", request.method, request.path_info, exc.message)
    messages.error(request, _t(request, "errors.generic"))


def _page_number(request):
    try:
        return max(int(request.GET.get("page", 1)), 1)
    except ValueError:
        return 1


def _page_obj(rows, count, page):
    paginator = Paginator(RangedRows(rows, count), settings.COMMUNITY_PAGE_SIZE)
    return paginator.get_page(page)


def member_required(view):
    """Load the signed-in user's member row into ``request.member``."""

    @functools.wraps(view)
    def wrapper(request, locale, *args, **kwargs):
        try:
            member = members.member_for_request(request)
        except BackendError as exc:
            _backend_failed(request, exc)
            return _redirect("home", locale)
        if member is None:
            messages.warning(request, _t(request, "errors.noMember"))
            return _redirect("home", locale)
        request.member = member
        return view(request, locale, *args, **kwargs)

    return wrapper


def admin_required(view):
    @member_required
    @functools.wraps(view)
    def wrapper(request, locale, *args, **kwargs):
        if not members.is_admin(request.member):
            return _redirect("profile", locale)
        return view(request, locale, *args, **kwargs)

    return wrapper


# ============================================================================
# HOME & AUTH
# ============================================================================

def home(request, locale):
    if not request.hosted_session:
        return render(request, "community/landing.html")

    context = {}
    try:
        member = members.member_for_request(request)
        client = client_for(request)
        context["stats"] = reports.dashboard_stats(client, timezone.now())
        context["posts"] = social.fetch_posts(client)[:5]
        context["member"] = member
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/home.html", context)


def login_view(request, locale):
    form = LoginForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            payload = auth.sign_in(
                get_backend(), form.cleaned_data["email"], form.cleaned_data["password"]
            )
        except BackendError:
            messages.error(request, _t(request, "auth.invalidCredentials"))
        else:
            auth.store_session(request, payload)
            messages.success(request, _t(request, "auth.welcomeBack"))
            return _redirect("home", locale)
    return render(request, "community/login.html", {"form": form})


def logout_view(request, locale):
    session = request.hosted_session
    if session:
        try:
            auth.sign_out(get_backend(), session["access_token"])
        except BackendError as exc:
            logger.info("Token revocation failed on logout: %s", exc.message)
    auth.clear_session(request)
    return _redirect("login", locale)


def register(request, locale):
    form = RegisterForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        confirm_url = request.build_absolute_uri(reverse("confirm", kwargs={"locale": locale}))
        try:
            auth.sign_up(
                get_backend(),
                form.cleaned_data["email"],
                form.cleaned_data["password"],
                form.cleaned_data["full_name"],
                redirect_to=confirm_url,
            )
        except BackendError as exc:
            if auth.is_duplicate_email_error(exc):
                form.add_error("email", _t(request, "auth.emailTaken"))
            else:
                logger.warning("Registration failed for %s: %s", form.cleaned_data["email"], exc.message)
                messages.error(request, _t(request, "auth.registrationFailed"))
        else:
            return render(request, "community/confirm.html", {"email": form.cleaned_data["email"]})
    return render(request, "community/register.html", {"form": form})


def confirm(request, locale):
    token_hash = request.GET.get("token_hash")
    otp_type = request.GET.get("type", "email")
    if not token_hash:
        return render(request, "community/confirm.html")

    try:
        response = auth.verify_email(get_backend(), token_hash, otp_type)
    except BackendError:
        messages.error(request, _t(request, "auth.confirmationFailed"))
        return _redirect("login", locale)

    if getattr(response, "session", None) is not None:
        auth.store_session(request, auth.session_payload(response.session, response.user))
    messages.success(request, _t(request, "auth.emailConfirmed"))
    return _redirect("home", locale)


def test_page(request, locale):
    return render(request, "community/test.html")


# ============================================================================
# MEMBERS
# ============================================================================

@member_required
def members_list(request, locale):
    search = request.GET.get("q", "").strip()
    page = _page_number(request)
    rows, count = [], 0
    try:
        rows, count = members.fetch_members(
            client_for(request), search, page, settings.COMMUNITY_PAGE_SIZE
        )
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/members.html", {
        "members": rows,
        "search": search,
        "page_obj": _page_obj(rows, count, page),
    })


@member_required
def member_detail(request, locale, member_id):
    client = client_for(request)
    try:
        member = members.fetch_member(client, member_id)
        member_payments, _count = payments.fetch_payments(client, member_id=member_id, page_size=50)
    except BackendError as exc:
        if exc.is_not_found:
            raise Http404("Member not found") from exc
        _backend_failed(request, exc)
        return _redirect("members", locale)
    return render(request, "community/member.html", {
        "member": member,
        "payments": member_payments,
    })


@admin_required
def member_create(request, locale):
    form = MemberForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            created = members.create_member(client_for(request), form.to_row())
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "members.created"))
            if created:
                return _redirect("member", locale, member_id=created["id"])
            return _redirect("members", locale)
    return render(request, "community/member_form.html", {"form": form})


@admin_required
def member_edit(request, locale, member_id):
    client = client_for(request)
    try:
        member = members.fetch_member(client, member_id)
    except BackendError as exc:
        if exc.is_not_found:
            raise Http404("Member not found") from exc
        _backend_failed(request, exc)
        return _redirect("members", locale)

    form = MemberForm(request.POST or None, initial=member)
    if request.method == "POST" and form.is_valid():
        try:
            members.update_member(client, member_id, form.to_row())
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "members.updated"))
            return _redirect("member", locale, member_id=member_id)
    return render(request, "community/member_form.html", {"form": form, "member": member})


@require_POST
@admin_required
def member_delete(request, locale, member_id):
    try:
        members.delete_member(client_for(request), member_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "members.deleted"))
    return _redirect("members", locale)


# ============================================================================
# PAYMENTS
# ============================================================================

@admin_required
def payments_list(request, locale):
    client = client_for(request)
    form = PaymentForm(request.POST or None)

    if request.method == "POST" and form.is_valid():
        try:
            payments.create_payment(
                client,
                form.cleaned_data["member_id"],
                float(form.cleaned_data["amount"]),
                form.cleaned_data["paid_on"],
            )
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "payments.recorded"))
            return _redirect("payments", locale)

    search = request.GET.get("q", "").strip()
    page = _page_number(request)
    rows, count, member_choices = [], 0, []
    try:
        rows, count = payments.fetch_payments(
            client, search_term=search, page=page, page_size=settings.COMMUNITY_PAGE_SIZE
        )
        member_choices = payments.fetch_members_for_payments(
            client, search=request.GET.get("member", ""), limit=50
        )
    except BackendError as exc:
        _backend_failed(request, exc)

    now = timezone.now()
    for row in rows:
        row["status"] = payments.payment_status(row, now)

    return render(request, "community/payments.html", {
        "payments": rows,
        "form": form,
        "member_choices": member_choices,
        "search": search,
        "page_obj": _page_obj(rows, count, page),
    })


@require_POST
@admin_required
def payment_edit(request, locale, payment_id):
    form = PaymentForm(request.POST)
    if not form.is_valid():
        for errors in form.errors.values():
            for error in errors:
                messages.error(request, error)
        return _redirect("payments", locale)
    try:
        payments.update_payment(
            client_for(request),
            payment_id,
            form.cleaned_data["member_id"],
            float(form.cleaned_data["amount"]),
            form.cleaned_data["paid_on"],
        )
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "payments.updated"))
    return _redirect("payments", locale)


@require_POST
@admin_required
def payment_delete(request, locale, payment_id):
    try:
        payments.delete_payment(client_for(request), payment_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "payments.deleted"))
    return _redirect("payments", locale)


# ============================================================================
# REPORTS
# ============================================================================

@admin_required
def reports_view(request, locale):
    time_range = request.GET.get("range", "week")
    if time_range not in reports.TIME_RANGES:
        time_range = "week"

    context = {"time_range": time_range, "time_ranges": list(reports.TIME_RANGES)}
    client = client_for(request)
    try:
        payment_rows, member_rows = reports.fetch_report_data(client)
        context["summary"] = reports.summarize(payment_rows, member_rows)
        context["monthly"] = reports.monthly_payments(payment_rows)
        context["trends"] = reports.fetch_payment_trends(client, time_range, timezone.now())
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/reports.html", context)


@admin_required
def reports_csv(request, locale):
    try:
        payment_rows, member_rows = reports.fetch_report_data(client_for(request))
    except BackendError as exc:
        _backend_failed(request, exc)
        return _redirect("reports", locale)

    summary = reports.summarize(payment_rows, member_rows)
    filename = f"reports_{timezone.localdate().isoformat()}.csv"
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    writer = csv.writer(response)
    writer.writerows(reports.report_csv_rows(summary))
    return response


# ============================================================================
# EVENTS & GALLERY
# ============================================================================

@member_required
def events_list(request, locale):
    client = client_for(request)
    form = EventForm(request.POST or None)

    if request.method == "POST":
        if not members.is_admin(request.member):
            return _redirect("events", locale)
        if form.is_valid():
            try:
                events.create_event(client, form.to_row(), created_by=request.member["id"])
            except BackendError as exc:
                _backend_failed(request, exc)
            else:
                messages.success(request, _t(request, "events.created"))
                return _redirect("events", locale)

    search = request.GET.get("q", "").strip()
    page = _page_number(request)
    rows, count = [], 0
    try:
        rows, count = events.fetch_events(client, search, page, settings.COMMUNITY_PAGE_SIZE)
    except BackendError as exc:
        _backend_failed(request, exc)

    now = timezone.now()
    for row in rows:
        row["status"] = events.event_status(row, now)

    return render(request, "community/events.html", {
        "events": rows,
        "form": form,
        "search": search,
        "page_obj": _page_obj(rows, count, page),
    })


@admin_required
def event_edit(request, locale, event_id):
    client = client_for(request)
    try:
        event = events.fetch_event(client, event_id)
    except BackendError as exc:
        if exc.is_not_found:
            raise Http404("Event not found") from exc
        _backend_failed(request, exc)
        return _redirect("events", locale)

    initial = dict(event)
    initial["event_date"] = parse_timestamp(event.get("event_date"))
    form = EventForm(request.POST or None, initial=initial)
    if request.method == "POST" and form.is_valid():
        try:
            events.update_event(client, event_id, form.to_row())
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "events.updated"))
            return _redirect("events", locale)
    return render(request, "community/event_form.html", {"form": form, "event": event})


@require_POST
@admin_required
def event_delete(request, locale, event_id):
    try:
        events.delete_event(client_for(request), event_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "events.deleted"))
    return _redirect("events", locale)


@member_required
def gallery(request, locale):
    images = []
    try:
        for post in social.fetch_posts(client_for(request)):
            for url in post["images"]:
                images.append({"url": url, "post": post})
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/gallery.html", {"images": images})


# ============================================================================
# PROFILE
# ============================================================================

@member_required
def profile_view(request, locale):
    member = request.member
    form = ProfileForm(request.POST or None, initial=member)
    if request.method == "POST" and form.is_valid():
        changes = profile.get_changed_fields(member, form.to_updates())
        if not changes:
            messages.info(request, _t(request, "profile.noChanges"))
            return _redirect("profile", locale)
        try:
            profile.update_user_profile(client_for(request), member["id"], changes)
        except ValidationError as exc:
            for field, errors in exc.message_dict.items():
                form.add_error(field if field in form.fields else None, errors)
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "profile.updated"))
            return _redirect("profile", locale)

    return render(request, "community/profile.html", {
        "member": member,
        "form": form,
        "avatar_form": AvatarForm(),
        "family_form": FamilyMemberForm(),
        "family_members": member.get("family_members") or [],
    })


@require_POST
@member_required
def profile_avatar(request, locale):
    form = AvatarForm(request.POST, request.FILES)
    if not form.is_valid():
        messages.error(request, _t(request, "profile.avatarMissing"))
        return _redirect("profile", locale)

    client = client_for(request)
    member = request.member
    try:
        url = profile.upload_profile_avatar(client, form.cleaned_data["avatar"], member["id"])
    except ValidationError as exc:
        for error in exc.messages:
            messages.error(request, error)
        return _redirect("profile", locale)
    except BackendError as exc:
        _backend_failed(request, exc)
        return _redirect("profile", locale)

    try:
        profile.update_user_profile(client, member["id"], {"avatar": url})
    except BackendError as exc:
        _backend_failed(request, exc)
        # The row still points at the old avatar, so drop the new upload
        try:
            profile.delete_profile_avatar(client, url)
        except BackendError as cleanup_exc:
            logger.warning("Could not remove unused avatar %s: %s", url, cleanup_exc.message)
        return _redirect("profile", locale)

    old_avatar = member.get("avatar")
    if old_avatar:
        try:
            profile.delete_profile_avatar(client, old_avatar)
        except BackendError as exc:
            logger.warning("Could not remove previous avatar %s: %s", old_avatar, exc.message)

    messages.success(request, _t(request, "profile.avatarUpdated"))
    return _redirect("profile", locale)


@require_POST
@member_required
def family_add(request, locale):
    form = FamilyMemberForm(request.POST)
    if form.is_valid():
        try:
            profile.add_family_member(client_for(request), request.member["id"], form.to_entry())
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "profile.familyAdded"))
    else:
        for field, errors in form.errors.items():
            for error in errors:
                messages.error(request, f"{field}: {error}")
    return _redirect("profile", locale)


@require_POST
@member_required
def family_edit(request, locale, family_member_id):
    form = FamilyMemberForm(request.POST)
    if form.is_valid():
        try:
            profile.update_family_member(
                client_for(request), request.member["id"], family_member_id, form.to_entry()
            )
        except ValidationError as exc:
            for error in exc.messages:
                messages.error(request, error)
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "profile.familyUpdated"))
    else:
        for field, errors in form.errors.items():
            for error in errors:
                messages.error(request, f"{field}: {error}")
    return _redirect("profile", locale)


@require_POST
@member_required
def family_delete(request, locale, family_member_id):
    try:
        profile.delete_family_member(client_for(request), request.member["id"], family_member_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "profile.familyRemoved"))
    return _redirect("profile", locale)


# ============================================================================
# SOCIAL FEED
# ============================================================================

@member_required
def social_feed(request, locale):
    client = client_for(request)
    member_id = request.member["id"]
    tab = request.GET.get("tab", "all")
    if tab not in social.FEED_TABS:
        tab = "all"

    form = PostForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            social.create_post(
                client,
                member_id,
                form.cleaned_data["title"],
                form.cleaned_data["content"],
                files=request.FILES.getlist("images"),
            )
        except ValidationError as exc:
            for error in exc.messages:
                messages.error(request, error)
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            messages.success(request, _t(request, "social.posted"))
            return redirect(f"{reverse('social', kwargs={'locale': locale})}?tab={tab}")

    posts = []
    try:
        friend_ids = social.friend_ids(social.fetch_friends(client, member_id), member_id)
        posts = social.filter_posts(social.fetch_posts(client), tab, member_id, friend_ids)
    except BackendError as exc:
        _backend_failed(request, exc)

    return render(request, "community/social.html", {
        "posts": posts,
        "tab": tab,
        "tabs": social.FEED_TABS,
        "form": form,
    })


@member_required
def post_detail(request, locale, post_id):
    client = client_for(request)
    try:
        post = social.fetch_post(client, post_id)
        comments = social.fetch_comments(client, post_id)
        liked = social.check_if_liked(client, post_id, request.member["id"])
    except BackendError as exc:
        if exc.is_not_found:
            raise Http404("Post not found") from exc
        _backend_failed(request, exc)
        return _redirect("social", locale)
    return render(request, "community/post.html", {
        "post": post,
        "comments": comments,
        "liked": liked,
        "comment_form": CommentForm(),
    })


@require_POST
@member_required
def post_delete(request, locale, post_id):
    try:
        social.delete_post(client_for(request), post_id, request.member["id"])
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "social.postDeleted"))
    return _redirect("social", locale)


@require_POST
@member_required
def comment_create(request, locale, post_id):
    form = CommentForm(request.POST)
    if form.is_valid():
        try:
            social.create_comment(
                client_for(request), post_id, request.member["id"], form.cleaned_data["content"]
            )
        except BackendError as exc:
            _backend_failed(request, exc)
    return _redirect("post", locale, post_id=post_id)


@require_POST
@member_required
def comment_delete(request, locale, post_id, comment_id):
    try:
        social.delete_comment(client_for(request), comment_id, request.member["id"])
    except BackendError as exc:
        _backend_failed(request, exc)
    return _redirect("post", locale, post_id=post_id)


@require_POST
@member_required
def like_toggle(request, locale, post_id):
    try:
        liked = social.toggle_like(client_for(request), post_id, request.member["id"])
    except BackendError as exc:
        logger.error("Like toggle on post %s failed: %s", post_id, exc.message)
        return JsonResponse({"error": exc.message}, status=502)
    return JsonResponse({"liked": liked})


@member_required
def friends(request, locale):
    client = client_for(request)
    member_id = request.member["id"]
    search = request.GET.get("q", "").strip()
    friend_list, candidates = [], []
    try:
        friend_list = social.friend_summaries(social.fetch_friends(client, member_id), member_id)
        if search:
            known = {friend["id"] for friend in friend_list} | {member_id}
            candidates = [
                m for m in members.search_members_by_name(client, search) if m["id"] not in known
            ]
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/friends.html", {
        "friends": friend_list,
        "candidates": candidates,
        "search": search,
    })


@require_POST
@member_required
def friend_add(request, locale, friend_id):
    if friend_id == request.member["id"]:
        messages.error(request, _t(request, "social.cannotFriendSelf"))
        return _redirect("friends", locale)
    try:
        social.send_friend_request(client_for(request), request.member["id"], friend_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "social.friendAdded"))
    return _redirect("friends", locale)


@require_POST
@member_required
def friend_remove(request, locale, friend_id):
    try:
        social.remove_friend(client_for(request), request.member["id"], friend_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "social.friendRemoved"))
    return _redirect("friends", locale)


# ============================================================================
# MESSAGES & NOTIFICATIONS
# ============================================================================

@member_required
def messages_inbox(request, locale):
    conversations = []
    try:
        conversations = social.fetch_conversations(client_for(request), request.member["id"])
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/inbox.html", {"conversations": conversations})


@member_required
def message_thread(request, locale, other_id):
    client = client_for(request)
    member_id = request.member["id"]
    form = MessageForm(request.POST or None)

    if request.method == "POST" and form.is_valid():
        try:
            social.send_message(client, member_id, other_id, form.cleaned_data["content"])
        except BackendError as exc:
            _backend_failed(request, exc)
        else:
            return _redirect("message_thread", locale, other_id=other_id)

    thread, other = [], None
    try:
        social.mark_messages_as_read(client, member_id, other_id)
        thread = social.fetch_messages(client, member_id, other_id)
        other = members.fetch_member(client, other_id)
    except BackendError as exc:
        if exc.is_not_found:
            raise Http404("Member not found") from exc
        _backend_failed(request, exc)

    return render(request, "community/thread.html", {
        "thread": thread,
        "other": other,
        "form": form,
    })


@member_required
def notifications_view(request, locale):
    notifs = []
    try:
        notifs = notifications.fetch_notifications_by_member_id(
            client_for(request), request.member["id"]
        )
    except BackendError as exc:
        _backend_failed(request, exc)
    return render(request, "community/notifications.html", {"notifications": notifs})


@require_POST
@member_required
def notification_read(request, locale, notification_id):
    try:
        notifications.mark_notification_as_read(client_for(request), notification_id)
    except BackendError as exc:
        _backend_failed(request, exc)
    return _redirect("notifications", locale)


@require_POST
@member_required
def notifications_read_all(request, locale):
    try:
        notifications.mark_all_notifications_as_read(client_for(request), request.member["id"])
    except BackendError as exc:
        _backend_failed(request, exc)
    else:
        messages.success(request, _t(request, "notifications.allRead"))
    return _redirect("notifications", locale)
