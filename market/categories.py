# Catalogue des catégories de services (parents puis sous-catégories).
# (slug, parent_slug, name_en, name_fr, name_de, name_ar, icon)

CATEGORIES = [
    ("house-cleaning", None, "House Cleaning", "Nettoyage de maison", "Hausreinigung", "تنظيف المنزل", "broom"),
    ("handyman", None, "Handyman Services", "Services de bricolage", "Handwerkerdienste", "خدمات السباكة والكهرباء", "tools"),
    ("gardening", None, "Gardening", "Jardinage", "Gartenarbeit", "البستنة", "seedling"),
    ("pet-care", None, "Pet Care", "Soins pour animaux", "Tierpflege", "رعاية الحيوانات الأليفة", "paw"),
    ("tutoring", None, "Tutoring", "Cours particuliers", "Nachhilfe", "الدروس الخصوصية", "book-open"),
    ("moving", None, "Moving & Packing", "Déménagement", "Umzug & Verpackung", "النقل والتعبئة", "truck-moving"),
    ("car-services", None, "Car Services", "Services automobiles", "Autodienste", "خدمات السيارات", "car"),
    ("event-planning", None, "Event Planning", "Organisation d'événements", "Eventplanung", "تخطيط الفعاليات", "calendar"),

    ("home-cleaning", "house-cleaning", "House Cleaning", "Nettoyage de maison", "Hausreinigung", "تنظيف المنزل", None),
    ("office-cleaning", "house-cleaning", "Office Cleaning", "Nettoyage de bureau", "Büroreinigung", "تنظيف المكتب", None),
    ("deep-cleaning", "house-cleaning", "Deep Cleaning", "Grand ménage", "Grundreinigung", "تنظيف عميق", None),
    ("window-cleaning", "house-cleaning", "Window Cleaning", "Nettoyage de vitres", "Fensterreinigung", "تنظيف النوافذ", None),
    ("carpet-cleaning", "house-cleaning", "Carpet Cleaning", "Nettoyage de tapis", "Teppichreinigung", "تنظيف السجاد", None),
    ("post-construction", "house-cleaning", "Post-Construction", "Nettoyage post-travaux", "Nachbauarbeiten", "تنظيف ما بعد البناء", None),

    ("furniture-assembly", "handyman", "Furniture Assembly", "Montage de meubles", "Möbelmontage", "تجميع الأثاث", None),
    ("painting", "handyman", "Painting", "Peinture", "Malen", "الطلاء", None),
    ("wall-mounting", "handyman", "Wall Mounting", "Fixation murale", "Wandmontage", "التثبيت على الحائط", None),
    ("door-window-repair", "handyman", "Door & Window Repair", "Réparation portes et fenêtres", "Tür- und Fensterreparatur", "إصلاح الأبواب والنوافذ", None),
    ("shelving", "handyman", "Shelving Installation", "Installation d'étagères", "Regalinstallation", "تركيب الرفوف", None),
    ("minor-repairs", "handyman", "Minor Repairs", "Petites réparations", "Kleinreparaturen", "إصلاحات صغيرة", None),

    ("lawn-mowing", "gardening", "Lawn Mowing", "Tonte de pelouse", "Rasenmähen", "قص العشب", None),
    ("garden-maintenance", "gardening", "Garden Maintenance", "Entretien de jardin", "Gartenpflege", "صيانة الحديقة", None),
    ("tree-trimming", "gardening", "Tree Trimming", "Taille d'arbres", "Baumschnitt", "تقليم الأشجار", None),
    ("planting", "gardening", "Planting", "Plantation", "Bepflanzung", "الزراعة", None),
    ("weeding", "gardening", "Weeding", "Désherbage", "Unkrautentfernung", "إزالة الأعشاب", None),
    ("irrigation", "gardening", "Irrigation Setup", "Installation d'irrigation", "Bewässerungsanlage", "تركيب الري", None),

    ("pet-walking", "pet-care", "Pet Walking", "Promenade d'animaux", "Gassigehen", "مشي الحيوانات", None),
    ("pet-sitting", "pet-care", "Pet Sitting", "Garde d'animaux", "Tierbetreuung", "رعاية الحيوانات", None),
    ("pet-grooming", "pet-care", "Pet Grooming", "Toilettage d'animaux", "Tierpflege", "تجميل الحيوانات", None),
    ("pet-training", "pet-care", "Pet Training", "Dressage d'animaux", "Tierausbildung", "تدريب الحيوانات", None),

    ("math-tutoring", "tutoring", "Math Tutoring", "Cours de mathématiques", "Mathematik-Nachhilfe", "دروس الرياضيات", None),
    ("language-tutoring", "tutoring", "Language Tutoring", "Cours de langues", "Sprachunterricht", "دروس اللغات", None),
    ("science-tutoring", "tutoring", "Science Tutoring", "Cours de sciences", "Naturwissenschaften-Nachhilfe", "دروس العلوم", None),
    ("computer-skills", "tutoring", "Computer Skills", "Compétences informatiques", "Computerkenntnisse", "مهارات الحاسوب", None),
    ("music-lessons", "tutoring", "Music Lessons", "Cours de musique", "Musikunterricht", "دروس الموسيقى", None),

    ("home-moving", "moving", "Home Moving", "Déménagement domicile", "Wohnungsumzug", "نقل المنزل", None),
    ("office-moving", "moving", "Office Moving", "Déménagement bureau", "Büroumzug", "نقل المكتب", None),
    ("packing", "moving", "Packing Services", "Services d'emballage", "Verpackungsdienste", "خدمات التعبئة", None),
    ("furniture-moving", "moving", "Furniture Moving", "Transport de meubles", "Möbeltransport", "نقل الأثاث", None),
    ("storage", "moving", "Storage Services", "Services de stockage", "Lagerdienste", "خدمات التخزين", None),

    ("car-washing", "car-services", "Car Washing", "Lavage de voiture", "Autowäsche", "غسيل السيارات", None),
    ("oil-change", "car-services", "Oil Change", "Changement d'huile", "Ölwechsel", "تغيير الزيت", None),
    ("tire-change", "car-services", "Tire Change", "Changement de pneus", "Reifenwechsel", "تغيير الإطارات", None),
    ("battery-replacement", "car-services", "Battery Replacement", "Remplacement de batterie", "Batteriewechsel", "استبدال البطارية", None),
    ("car-detailing", "car-services", "Car Detailing", "Détailage automobile", "Autodetailierung", "تفصيل السيارات", None),

    ("event-organisation", "event-planning", "Event Planning", "Planification d'événements", "Eventplanung", "تخطيط الفعاليات", None),
    ("catering", "event-planning", "Catering Services", "Services de restauration", "Catering-Dienste", "خدمات التموين", None),
    ("photography", "event-planning", "Photography", "Photographie", "Fotografie", "التصوير", None),
    ("dj", "event-planning", "DJ Services", "Services DJ", "DJ-Dienste", "خدمات الدي جي", None),
    ("decoration", "event-planning", "Decoration", "Décoration", "Dekoration", "الديكور", None),
]
