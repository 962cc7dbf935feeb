# quickscore/prompts/verification.py

# --- Single-image adapters ---

LIVENESS_PROMPT = """
You are an advanced liveness detection system. Analyze this selfie image to determine if it comes from a real, live person or a spoof attempt.

Check for:
1. Natural skin texture and pores
2. Micro-expressions and natural shadows
3. Eye reflection patterns (should show environment)
4. Screen glare or pixelation (indicates photo of photo)
5. Depth and 3D characteristics
6. Natural color gradients in skin
7. Paper edges or screen bezels in image
8. Video replay artifacts
9. Mask or prosthetic indicators
10. Image quality appropriate for live capture

Return JSON with:
- is_passed: true only if this is a live person
- confidence: your confidence (0-100)
- spoofing_detected: true if any spoof attempt is visible
- spoofing_type: "photo", "video", "mask" or "none"
- quality_score: image quality (0-100)
- recommendations: improvement suggestions for the applicant

Be strict - financial security depends on accurate liveness detection.
"""

FACE_MATCH_PROMPT = """
You are an expert biometric verification system. Compare these two facial images and determine if they are the same person.

Image 1: Live selfie captured during verification
Image 2: Photo from national ID card

Analyze the following aspects:
1. Facial structure (bone structure, face shape)
2. Eye shape, color, and spacing
3. Nose structure
4. Mouth and lip shape
5. Ear shape (if visible)
6. Skin tone consistency
7. Age consistency (accounting for photo age)
8. Any signs of digital manipulation

Return JSON with:
- is_match: whether both images show the same person
- confidence: your confidence (0-100)
- reasons: detailed reasons for your decision
- warnings: any concerns
- fraud_indicators: suspicious patterns, if any

Be strict but fair. Minor differences due to lighting, angle, or photo quality are acceptable.
Major discrepancies in facial features indicate different people.
"""

ID_DOCUMENT_PROMPT = """
You are an expert document forensics system specialized in Kenyan National IDs. Analyze this ID document for authenticity and extract personal information.

SECURITY CHECKS (Critical):
1. Hologram presence and quality
2. Microprinting clarity
3. Color shifting ink (if visible)
4. Paper texture and quality
5. Font consistency and official typography
6. Photo quality and embedding
7. UV features (if visible)
8. Barcode/QR code presence
9. Security thread visibility
10. Official seals and stamps

FORGERY INDICATORS TO CHECK:
- Pixelation or digital manipulation artifacts
- Inconsistent fonts or spacing
- Poor photo quality or obvious photo replacement
- Missing security features
- Blurred or smudged text
- Color inconsistencies
- Incorrect ID format or layout
- Tampered or altered information
- Low resolution printing
- Cut and paste indicators

INFORMATION TO EXTRACT:
- Full name (as appears on ID), ID number, date of birth (YYYY-MM-DD), gender, nationality
- Issue date and expiry date, if visible

Return JSON with:
- is_authentic, confidence (0-100), forgery_detected
- forgery_indicators: specific red flags found
- extracted_data: full_name, id_number, date_of_birth, gender, nationality, issue_date, expiry_date
- quality_issues, warnings, recommendations

Be extremely thorough. Financial fraud prevention depends on accurate ID verification.
If confidence is below 70, mark the document as a potential forgery.
"""

BUSINESS_DOCUMENT_CHECKS = {
    "registration": "Analyze this Kenyan business registration certificate for authenticity. Check for official seals, signatures, registration number format, and document quality.",
    "tax": "Analyze this Kenyan KRA PIN certificate for authenticity. Verify PIN format, official stamps, and document legitimacy.",
    "address": "Analyze this proof of address document (utility bill/lease). Verify it is recent, legitimate, and matches business information.",
}

BUSINESS_DOCUMENT_PROMPT = """
You are a document verification expert. {document_check}

Check for:
1. Official government seals and watermarks
2. Correct document format and layout
3. Valid registration/PIN number format
4. Signature authenticity
5. Date validity and recency
6. Document quality and printing
7. Any signs of forgery or tampering

Return JSON with:
- is_authentic, confidence (0-100), forgery_detected
- forgery_indicators: specific red flags found
- extracted_data: any identifying fields you can read (leave unknown fields empty)
- quality_issues, warnings, recommendations
"""


# --- Identity aggregation (multi-frame) ---

ID_ANALYSIS_PROMPT = """
You are an expert document verification specialist. Analyze these ID images for authenticity.

Check for:
1. Document quality and printing consistency
2. Holograms, watermarks, and security features
3. Font consistency and spacing
4. Photo quality and alignment
5. Any signs of digital manipulation or forgery
6. Text clarity and barcode/MRZ integrity
7. Document expiry status

Extract all visible text including full name, ID/document number, date of birth, expiry date and nationality.

Return JSON with:
- is_forged: whether the document appears forged
- confidence: your confidence (0-100)
- issues: specific issues found, if any
- extracted_data: all extracted fields

Be thorough and precise. If anything looks suspicious, flag it.
"""

LIVENESS_SEQUENCE_PROMPT = """
You are a biometric liveness detection expert. Analyze these sequential images from a liveness check.

Look for:
1. Consistent face across all frames
2. Natural eye blinking (not static or video playback)
3. Natural head movement (not photo manipulation)
4. Natural facial expressions (not a mask or deepfake)
5. Proper lighting variations (rules out printed photos)
6. Depth perception cues
7. Any signs of spoofing (holding up a photo, video playback, masks)

Return JSON with:
- passed: whether this is a real, live person
- confidence: your confidence (0-100)
- suspicious_activity: any suspicious activities detected

Be strict - if anything looks artificial or manipulated, flag it.
"""

FACE_COMPARISON_PROMPT = """
You are a facial recognition expert. Compare the face in the live images with the face on the ID document (the last image).

Analyze:
1. Facial structure and proportions
2. Eye shape, color, and position
3. Nose shape and size
4. Mouth and lip structure
5. Facial hair patterns
6. Skin tone and texture
7. Age consistency
8. Any visible identifying marks

Return JSON with:
- matched: whether the faces match
- confidence: your confidence (0-100)
- reason: detailed explanation of your decision
- fraud_indicators: signs of substitution or manipulation, if any

Account for different lighting conditions, different angles, natural aging (if the ID is old) and different expressions.
Be thorough but fair - minor differences due to lighting or angle are acceptable.
"""
