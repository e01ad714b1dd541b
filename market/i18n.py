"""
Petit catalogue de messages localisés (fr, en, ar ; de retombe sur en).
"""
from django.utils import translation

SUPPORTED_LOCALES = ('fr', 'en', 'de', 'ar')
DEFAULT_LOCALE = 'fr'
FALLBACK_LOCALE = 'en'

CATALOG = {
    'wallet.insufficient_balance': {
        'en': "Your wallet balance is below {minimum} {currency}. Please top up your wallet to accept or start bookings.",
        'fr': "Le solde de votre portefeuille est inférieur à {minimum} {currency}. Veuillez recharger votre portefeuille pour accepter ou démarrer des réservations.",
        'ar': "رصيد محفظتك أقل من {minimum} {currency}. يرجى شحن محفظتك لقبول الحجوزات أو بدئها.",
    },
    'notifications.payment_confirmed.title': {
        'en': "Payment confirmed",
        'fr': "Paiement confirmé",
        'ar': "تم تأكيد الدفع",
    },
    'notifications.payment_confirmed.message': {
        'en': "Payment of {amount} {currency} confirmed for \"{service}\". A platform fee of {fee} {currency} was deducted from your wallet.",
        'fr': "Paiement de {amount} {currency} confirmé pour « {service} ». Des frais de plateforme de {fee} {currency} ont été déduits de votre portefeuille.",
        'ar': "تم تأكيد دفع {amount} {currency} لخدمة \"{service}\". تم خصم رسوم المنصة {fee} {currency} من محفظتك.",
    },
    'notifications.booking_status.title': {
        'en': "Booking update",
        'fr': "Mise à jour de la réservation",
        'ar': "تحديث الحجز",
    },
    'notifications.booking_status.message': {
        'en': "Your booking for \"{service}\" is now {status}.",
        'fr': "Votre réservation pour « {service} » est maintenant : {status}.",
        'ar': "حجزك لخدمة \"{service}\" أصبح الآن: {status}.",
    },
    'notifications.booking_created.title': {
        'en': "New booking request",
        'fr': "Nouvelle demande de réservation",
        'ar': "طلب حجز جديد",
    },
    'notifications.booking_created.message': {
        'en': "You received a new booking request for \"{service}\".",
        'fr': "Vous avez reçu une nouvelle demande de réservation pour « {service} ».",
        'ar': "لقد تلقيت طلب حجز جديد لخدمة \"{service}\".",
    },
    'notifications.booking_cancelled.title': {
        'en': "Booking cancelled",
        'fr': "Réservation annulée",
        'ar': "تم إلغاء الحجز",
    },
    'notifications.booking_cancelled.message': {
        'en': "The booking for \"{service}\" was cancelled: {reason}",
        'fr': "La réservation pour « {service} » a été annulée : {reason}",
        'ar': "تم إلغاء حجز \"{service}\": {reason}",
    },
    'notifications.application_received.title': {
        'en': "New application",
        'fr': "Nouvelle candidature",
        'ar': "طلب جديد",
    },
    'notifications.application_received.message': {
        'en': "A tasker applied to your job \"{job}\".",
        'fr': "Un prestataire a postulé à votre mission « {job} ».",
        'ar': "تقدم مقدم خدمة لمهمتك \"{job}\".",
    },
    'notifications.application_accepted.title': {
        'en': "Application accepted",
        'fr': "Candidature acceptée",
        'ar': "تم قبول طلبك",
    },
    'notifications.application_accepted.message': {
        'en': "Your application for \"{job}\" was accepted.",
        'fr': "Votre candidature pour « {job} » a été acceptée.",
        'ar': "تم قبول طلبك للمهمة \"{job}\".",
    },
    'notifications.application_rejected.title': {
        'en': "Application not selected",
        'fr': "Candidature non retenue",
        'ar': "لم يتم اختيار طلبك",
    },
    'notifications.application_rejected.message': {
        'en': "Your application for \"{job}\" was not selected.",
        'fr': "Votre candidature pour « {job} » n'a pas été retenue.",
        'ar': "لم يتم اختيار طلبك للمهمة \"{job}\".",
    },
    'notifications.job_completed.title': {
        'en': "Job completed",
        'fr': "Mission terminée",
        'ar': "تم إنجاز المهمة",
    },
    'notifications.job_completed.message': {
        'en': "The tasker marked \"{job}\" as completed. Please confirm.",
        'fr': "Le prestataire a marqué « {job} » comme terminée. Merci de confirmer.",
        'ar': "قام مقدم الخدمة بتحديد \"{job}\" كمكتملة. يرجى التأكيد.",
    },
    'notifications.review_received.title': {
        'en': "New review",
        'fr': "Nouvel avis",
        'ar': "تقييم جديد",
    },
    'notifications.review_received.message': {
        'en': "You received a {rating}/5 review.",
        'fr': "Vous avez reçu un avis de {rating}/5.",
        'ar': "لقد تلقيت تقييماً {rating}/5.",
    },
    'notifications.message_received.title': {
        'en': "New message",
        'fr': "Nouveau message",
        'ar': "رسالة جديدة",
    },
    'notifications.message_received.message': {
        'en': "{sender}: {preview}",
        'fr': "{sender} : {preview}",
        'ar': "{sender}: {preview}",
    },
    'notifications.refund_created.title': {
        'en': "New wallet refund request",
        'fr': "Nouvelle demande de remboursement",
        'ar': "طلب استرداد جديد",
    },
    'notifications.refund_created.message': {
        'en': "Refund request {reference} of {amount} {currency}.",
        'fr': "Demande de remboursement {reference} de {amount} {currency}.",
        'ar': "طلب استرداد {reference} بقيمة {amount} {currency}.",
    },
    'notifications.refund_approved.title': {
        'en': "Refund approved",
        'fr': "Remboursement approuvé",
        'ar': "تمت الموافقة على الاسترداد",
    },
    'notifications.refund_approved.message': {
        'en': "Your refund request {reference} was approved.",
        'fr': "Votre demande de remboursement {reference} a été approuvée.",
        'ar': "تمت الموافقة على طلب الاسترداد {reference}.",
    },
    'notifications.refund_rejected.title': {
        'en': "Refund rejected",
        'fr': "Remboursement refusé",
        'ar': "تم رفض الاسترداد",
    },
    'notifications.refund_rejected.message': {
        'en': "Your refund request {reference} was rejected: {notes}",
        'fr': "Votre demande de remboursement {reference} a été refusée : {notes}",
        'ar': "تم رفض طلب الاسترداد {reference}: {notes}",
    },
    'notifications.profile_incomplete.title': {
        'en': "Complete your profile",
        'fr': "Complétez votre profil",
        'ar': "أكمل ملفك الشخصي",
    },
    'notifications.profile_incomplete.message': {
        'en': "Your profile is only {percent}% complete. Complete it to get more bookings.",
        'fr': "Votre profil n'est complété qu'à {percent}%. Complétez-le pour recevoir plus de réservations.",
        'ar': "ملفك الشخصي مكتمل بنسبة {percent}% فقط. أكمله لتحصل على المزيد من الحجوزات.",
    },
}


def normalize_locale(value) -> str:
    """Réduit 'en-US' -> 'en' ; tout ce qui n'est pas supporté -> fr."""
    if not value:
        return DEFAULT_LOCALE
    code = str(value).strip().lower().replace('_', '-').split('-')[0]
    return code if code in SUPPORTED_LOCALES else DEFAULT_LOCALE


def translate(key: str, locale=None, **params) -> str:
    locale = normalize_locale(locale or translation.get_language())
    entry = CATALOG.get(key)
    if entry is None:
        return key
    template = entry.get(locale) or entry.get(FALLBACK_LOCALE) or key
    return template.format(**params) if params else template
